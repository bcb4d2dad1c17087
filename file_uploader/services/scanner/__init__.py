# Discovery of files left behind by earlier runs.
from .directory_scanner import DirectoryScanner

__all__ = [
    "DirectoryScanner",
]
