"""
Input validation for values that end up on disk or on the wire.

Contact names become local filenames and UIDs become remote resource
names, so both are checked before any file or HTTP call is made.
"""

import re

# Characters that are unsafe in filenames on at least one common platform
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Full name")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_full_name(full_name: str) -> tuple[bool, str]:
    """
    Validate a contact's full name for use as a note filename.

    Args:
        full_name: The display name of the contact

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot be made only of dots (".", "..")
    """
    if not full_name or not full_name.strip():
        return (
            False,
            format_validation_error("Full name", "cannot be empty"),
        )

    if not full_name.strip().strip("."):
        return (
            False,
            format_validation_error(
                "Full name", "cannot consist only of dots"
            ),
        )

    return (True, "")


def validate_uid(uid: str) -> tuple[bool, str]:
    """
    Validate a contact UID for use as a remote resource name.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot contain '/' (would address a different collection)
        - Cannot be '.' or '..'
    """
    if not uid or not uid.strip():
        return (False, format_validation_error("UID", "cannot be empty"))

    if "/" in uid:
        return (False, format_validation_error("UID", "cannot contain '/'"))

    if uid in (".", ".."):
        return (
            False,
            format_validation_error("UID", "cannot be '.' or '..'"),
        )

    return (True, "")


def contact_filename(full_name: str, suffix: str = "") -> str:
    """
    Build the note filename for a contact.

    Unsafe characters are replaced with ``_``; an optional *suffix* is
    appended in parentheses (used to disambiguate equal names).

    Raises:
        ValueError: If the full name fails ``validate_full_name``.
    """
    is_valid, error = validate_full_name(full_name)
    if not is_valid:
        raise ValueError(error)

    stem = _UNSAFE_FILENAME_CHARS.sub("_", full_name.strip())
    if suffix:
        stem = f"{stem} ({_UNSAFE_FILENAME_CHARS.sub('_', suffix)})"
    return f"{stem}.md"
