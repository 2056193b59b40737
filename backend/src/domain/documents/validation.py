"""Checks applied to an artifact before it is registered or versioned.

Each check returns ``(is_valid, error_message)`` so the lifecycle service
can turn the first failure into an INVALID_FILE result.
"""

import os
import re
from typing import Optional, Tuple

# Upper bound for a single artifact (default 100MB)
MAX_FILE_SIZE = int(os.getenv('MAX_UPLOAD_SIZE_BYTES', 100 * 1024 * 1024))

MAX_FILENAME_LENGTH = 255

_CONTROL_CHARS = re.compile(r'[\x00-\x1f]')

Check = Tuple[bool, Optional[str]]


def validate_file_size(size_bytes: int, max_size: Optional[int] = None) -> Check:
    """Reject negative sizes and artifacts above ``max_size``.

    Zero-byte artifacts are accepted: blank templates are legitimate files.

    Example:
        >>> validate_file_size(1024)
        (True, None)
        >>> validate_file_size(-1)
        (False, 'File size cannot be negative')
    """
    limit = MAX_FILE_SIZE if max_size is None else max_size

    if size_bytes < 0:
        return False, "File size cannot be negative"
    if size_bytes > limit:
        return False, f"File exceeds maximum size of {limit} bytes (got {size_bytes} bytes)"
    return True, None


def validate_filename(filename: str) -> Check:
    """Validate a display name.

    The name must be non-blank, at most 255 characters, a bare name (no
    directory part) and free of control characters.
    """
    if not filename or not filename.strip():
        return False, "Filename cannot be empty"
    if len(filename) > MAX_FILENAME_LENGTH:
        return False, f"Filename exceeds {MAX_FILENAME_LENGTH} characters (got {len(filename)})"
    if os.sep in filename or '/' in filename or '\\' in filename:
        return False, "Filename contains directory separators"
    if _CONTROL_CHARS.search(filename):
        return False, "Filename contains control characters"
    return True, None


def validate_file_url(file_url: str) -> Check:
    """The storage reference must be present and free of null bytes"""
    if not file_url or not file_url.strip():
        return False, "File URL cannot be empty"
    if '\x00' in file_url:
        return False, "File URL contains null bytes"
    return True, None
