"""
Constants for the WTG trigger file codec.
"""

# File signature at offset 0
FILE_MAGIC = b'WTG!'

# Format versions with a registered layout
FORMAT_VERSION_ROC = 4
FORMAT_VERSION_TFT = 7

# Sub-version markers that precede the format version in 1.31+ files
SUBVERSION_MARKERS = (0x80000004, 0x80000007)

# int32 stored between the category and variable blocks
DEFAULT_GAME_VERSION = 2

# Flag stored after a variable's type; editor-written globals always carry 1
VARIABLE_SCOPE_GLOBAL = 1

# Function/parameter nesting allowed before the input is treated as corrupt
DEFAULT_MAX_DEPTH = 64

# Upper bound for a configured depth; reads and writes recurse once per level
MAX_DEPTH_LIMIT = 200

DEFAULT_ENCODING = 'utf-8'

# Pre-placed objects are referenced through editor-generated globals
GENERATED_GLOBAL_PREFIX = 'gg_'

# Number of variables listed by the validate command
VALIDATE_PREVIEW_LIMIT = 10

PRIMITIVE_TYPES = frozenset(['integer', 'real', 'boolean', 'string'])
