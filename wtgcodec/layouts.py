"""Version-specific field layouts for WTG files.

A layout is selected once after the header is decoded and then consulted by
every record's read and write, so the two directions stay symmetric.
"""

from __future__ import annotations

from dataclasses import dataclass

from wtgcodec.const import FORMAT_VERSION_ROC, FORMAT_VERSION_TFT, SUBVERSION_MARKERS
from wtgcodec.errors import UnsupportedVersion

# Byte ranges where a decode/encode round trip may legitimately differ
BOOLEAN_VARIANCE = 'boolean int32 fields: any non-zero value decodes as true and is re-encoded as 1'
TRAILING_PADDING_VARIANCE = 'zero bytes after the trigger block are dropped'


@dataclass(frozen=True)
class Layout:
    """On-disk field layout of one format version."""

    version: int
    name: str
    has_comment_flags: bool  # categories and triggers carry is_comment
    has_array_sizes: bool  # variables carry array_size
    has_child_functions: bool  # functions carry a child count (ECA blocks)
    tolerated_variance: tuple[str, ...] = (BOOLEAN_VARIANCE, TRAILING_PADDING_VARIANCE)

    @property
    def min_category_size(self) -> int:
        # id + empty name [+ is_comment]
        return 4 + 1 + (4 if self.has_comment_flags else 0)

    @property
    def min_variable_size(self) -> int:
        # name + type + scope + is_array [+ array_size] + is_initialized + initial value
        return 1 + 1 + 4 + 4 + (4 if self.has_array_sizes else 0) + 4 + 1

    @property
    def min_trigger_size(self) -> int:
        # name + description [+ is_comment] + 4 flags + category id + function count
        return 1 + 1 + (4 if self.has_comment_flags else 0) + 4 * 4 + 4 + 4

    @property
    def min_function_size(self) -> int:
        # kind + name + is_enabled [+ child count]
        return 4 + 1 + 4 + (4 if self.has_child_functions else 0)


LAYOUTS: dict[int, Layout] = {
    FORMAT_VERSION_ROC: Layout(
        version=FORMAT_VERSION_ROC,
        name='Reign of Chaos',
        has_comment_flags=False,
        has_array_sizes=False,
        has_child_functions=False,
    ),
    FORMAT_VERSION_TFT: Layout(
        version=FORMAT_VERSION_TFT,
        name='The Frozen Throne',
        has_comment_flags=True,
        has_array_sizes=True,
        has_child_functions=True,
    ),
}


def get_layout(version: int, offset: int | None = None) -> Layout:
    """Return the layout registered for a format version.

    Raises:
        UnsupportedVersion: If no layout is registered for the version
    """
    layout = LAYOUTS.get(version)
    if layout is not None:
        return layout

    supported = ', '.join(str(v) for v in sorted(LAYOUTS))
    if version & 0xFFFFFFFF in SUBVERSION_MARKERS:
        raise UnsupportedVersion(
            'The 1.31+ item-tree format is not supported',
            offset=offset,
            expected=f'format version {supported}',
            found=f'sub-version marker {version & 0xFFFFFFFF:#x}',
        )
    raise UnsupportedVersion('Unsupported format version', offset=offset, expected=supported, found=version)
