"""Input validation for assembly and export paths."""

from pathlib import Path


class SecurityError(Exception):
    """Base exception for path validation errors."""
    pass


class InvalidPathError(SecurityError):
    """Raised when a path cannot be resolved."""
    pass


class FileSizeError(SecurityError):
    """Raised when file size exceeds limits."""
    pass


def sanitize_binary_path(
    binary_path: str,
    max_size_bytes: int = 500 * 1024 * 1024  # 500MB default
) -> Path:
    """
    Sanitize and validate an assembly path.

    Args:
        binary_path: User-supplied path to the assembly
        max_size_bytes: Maximum allowed file size in bytes

    Returns:
        Validated absolute path

    Raises:
        InvalidPathError: If path cannot be resolved
        FileSizeError: If file exceeds size limit
        FileNotFoundError: If file does not exist
        ValueError: If path is not a regular file
    """
    try:
        path = Path(binary_path).resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidPathError(f"Invalid path: {e}")

    if not path.exists():
        raise FileNotFoundError(f"File does not exist: {binary_path}")

    if not path.is_file():
        raise ValueError(f"Path is not a file: {binary_path}")

    try:
        file_size = path.stat().st_size
    except OSError as e:
        raise ValueError(f"Cannot get file size: {e}")

    if file_size > max_size_bytes:
        raise FileSizeError(
            f"File too large: {file_size} bytes (max: {max_size_bytes})"
        )

    return path


def sanitize_output_path(output_path: str | Path) -> Path:
    """
    Validate an export destination.

    Args:
        output_path: Requested output path

    Returns:
        Absolute output path

    Raises:
        ValueError: If path is a directory or its parent does not exist
    """
    try:
        abs_path = Path(output_path).resolve()
    except (OSError, RuntimeError) as e:
        raise ValueError(f"Invalid path: {e}")

    if abs_path.is_dir():
        raise ValueError(f"Output path is a directory: {output_path}")

    if not abs_path.parent.exists():
        raise ValueError(f"Parent directory does not exist: {abs_path.parent}")

    return abs_path
