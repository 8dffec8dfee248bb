"""Stylesheet import expansion and path rewriting."""

from .parser import (
    CssImport,
    extract_relative_paths,
    get_expanded_css,
    get_file_imports,
    parse_imports,
    rewrite_relative_paths,
)

__all__ = [
    "CssImport",
    "extract_relative_paths",
    "get_expanded_css",
    "get_file_imports",
    "parse_imports",
    "rewrite_relative_paths",
]
