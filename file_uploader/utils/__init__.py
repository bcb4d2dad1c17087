"""
Utilities package for the file uploader.

Pure functions without side effects, shared by the scanner and the worker.
"""

from .file_operations import (
    UPLOADED_MARKER,
    uploaded_path,
    filename_stem,
    is_uploaded_name,
    is_hidden_name,
    matches_suffix,
)

__all__ = [
    "UPLOADED_MARKER",
    "uploaded_path",
    "filename_stem",
    "is_uploaded_name",
    "is_hidden_name",
    "matches_suffix",
]
