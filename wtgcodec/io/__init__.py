"""Binary IO utilities for WTG parsing."""

from wtgcodec.io.reader import Reader
from wtgcodec.io.writer import Writer

__all__ = ['Reader', 'Writer']
