"""File handler module: encoding-aware read/write and output path checks.

Provides the file I/O used by the Markdown contact store.  Records are
read with their detected encoding and written back in the same encoding
so untouched bytes survive a rewrite.
"""

from pathlib import Path

from charset_normalizer import from_bytes

# =============================================================================
# Path Validation
# =============================================================================


def validate_output_path(
    path_str: str, base_dir: str | None = None
) -> Path:
    """Validate an output file path (file need not exist, but parent must).

    Args:
        path_str: Absolute path string for the output file.
        base_dir: Optional base directory; output must be under this directory.

    Returns:
        Resolved Path object for the output file.

    Raises:
        ValueError: If path is relative, parent doesn't exist, or path is outside base_dir.
    """
    path = Path(path_str)
    if not path.is_absolute():
        raise ValueError(f"Path must be absolute: {path_str}")
    resolved = path.resolve()
    if not resolved.parent.exists():
        raise ValueError(
            f"Output parent directory not found: {resolved.parent}"
        )
    if base_dir is not None:
        base_resolved = Path(base_dir).resolve()
        if not resolved.is_relative_to(base_resolved):
            raise ValueError(
                f"Output path is outside base directory: {resolved} not under {base_resolved}"
            )
    return resolved


# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # ascii is a strict subset of utf-8; new field values may not be
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a file, creating parent directories as needed.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)


def create_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a new file, refusing to replace an existing one.

    Raises:
        FileExistsError: If *path* already exists.
    """
    encoded = content.encode(encoding)
    with open(path, "xb") as fh:
        fh.write(encoded)
    return len(encoded)
