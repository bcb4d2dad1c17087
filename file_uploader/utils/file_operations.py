import os

UPLOADED_MARKER = "_uploaded"


def uploaded_path(path: str) -> str:
    """
    Path a file is renamed to after a successful upload.

    The marker goes in front of the last extension of the file name:
    ``rec.flac`` -> ``rec_uploaded.flac``, ``rec`` -> ``rec_uploaded``.
    """
    root, ext = os.path.splitext(path)
    return f"{root}{UPLOADED_MARKER}{ext}"


def filename_stem(filename: str) -> str:
    return os.path.splitext(filename)[0]


def is_uploaded_name(filename: str) -> bool:
    return filename_stem(filename).endswith(UPLOADED_MARKER)


def is_hidden_name(filename: str) -> bool:
    return filename.startswith(".")


def matches_suffix(path: str, suffix: str) -> bool:
    return not suffix or path.endswith(suffix)
