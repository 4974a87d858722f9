"""Lexical masking and brace-matched boundary scanning."""

from anchorscan.index._internal.scanning.boundaries import (
    BoundaryScanner,
    impl_header_name,
    program_module_range,
    scan_boundaries,
)
from anchorscan.index._internal.scanning.lexer import mask_lines, mask_text

__all__ = [
    "BoundaryScanner",
    "scan_boundaries",
    "impl_header_name",
    "program_module_range",
    "mask_lines",
    "mask_text",
]
