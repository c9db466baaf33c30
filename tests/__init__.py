# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import make_row, make_row_set, png_bytes
"""

from .utils import make_row, make_row_set, png_bytes

__all__ = ["make_row", "make_row_set", "png_bytes"]
