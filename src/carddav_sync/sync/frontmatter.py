"""Read and rewrite the ``---`` header block of a contact note.

Reading goes through PyYAML's ``BaseLoader`` so every scalar stays a
string (phone numbers with leading zeros, ``1990-06-15`` birthdays).
Writing never re-serializes the header: known ``key: value`` lines are
replaced in place, every other header line and the whole body are kept
byte-for-byte.
"""

from __future__ import annotations

import json
import re
from typing import Any

import yaml

from .fields import CREATE_ORDER, header_values
from .models import Contact

_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*\r?$", re.DOTALL | re.MULTILINE
)
_KEY_LINE_RE = re.compile(r"^([A-Za-z_][\w-]*)[ \t]*:(?=\s|$)")

# First characters that YAML would read as an indicator in a plain scalar
_INDICATORS = frozenset("[]{}#&*!|>'\"%@`,")


def split_frontmatter(content: str) -> re.Match | None:
    """Match the header block; group 1 holds the header lines."""
    return _FRONTMATTER_RE.match(content)


def read_header(content: str) -> dict[str, Any] | None:
    """Parse the header of a note.

    Returns:
        The header mapping, ``{}`` for an empty header, or ``None`` when the
        note has no header block.

    Raises:
        yaml.YAMLError: If the header is not valid YAML.
        ValueError: If the header is YAML but not a mapping.
    """
    match = split_frontmatter(content)
    if match is None:
        return None

    data = yaml.load(match.group(1), Loader=yaml.BaseLoader)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Header is a {type(data).__name__}, expected key: value lines"
        )
    return data


def format_value(value: str) -> str:
    """Render *value* so that YAML reads it back unchanged.

    Plain text is written as-is; anything YAML would misread is written as
    a double-quoted scalar.
    """
    if not value:
        return ""
    needs_quotes = (
        value[0] in _INDICATORS
        or value != value.strip()
        or value[:2] in ("- ", "? ", ": ")
        or value in ("-", "?", ":")
        or value.endswith(":")
        or ": " in value
        or " #" in value
        or not value.isprintable()
    )
    if needs_quotes:
        return _escape(json.dumps(value, ensure_ascii=False))
    return value


def _escape(quoted: str) -> str:
    # json.dumps leaves U+0085, U+2028 and friends raw; YAML folds those
    return "".join(
        ch if ch.isprintable()
        else f"\\u{ord(ch):04x}" if ord(ch) <= 0xFFFF
        else f"\\U{ord(ch):08x}"
        for ch in quoted
    )


def _format_line(key: str, value: str, ending: str) -> str:
    return f"{key}: {format_value(value)}{ending}"


def _line_ending(line: str, default: str) -> str:
    stripped = line.rstrip("\r\n")
    return line[len(stripped):] or default


def _is_continuation(line: str) -> bool:
    """Indented lines and block sequence items belong to the previous key."""
    return line[:1] in (" ", "\t") or line.rstrip("\r\n") == "-" or line.startswith("- ")


def _continues_after(lines: list[str], index: int) -> bool:
    """Whether the blank line at *index* sits inside the previous value."""
    for line in lines[index + 1:]:
        if line.strip():
            return _is_continuation(line)
    return False


def update_header(content: str, values: dict[str, str]) -> str:
    """Overwrite the header lines named in *values*.

    Every line whose key is in *values* is replaced, along with any
    continuation lines of its old value.  Keys that are absent from the
    header are appended at its end unless their value is empty.  Nothing
    outside those lines changes.

    Raises:
        ValueError: If the note has no header block.
    """
    match = split_frontmatter(content)
    if match is None:
        raise ValueError("note has no front matter header")

    header = match.group(1)
    newline = "\r\n" if "\r\n" in content[: match.end()] else "\n"

    out: list[str] = []
    seen: set[str] = set()
    skipping = False
    # Split on "\n" only; str.splitlines also breaks on U+2028 and the like
    lines = re.findall(r"[^\n]*\n|[^\n]+", header)
    for index, line in enumerate(lines):
        if skipping:
            if _is_continuation(line):
                continue
            if not line.strip() and _continues_after(lines, index):
                continue
        skipping = False

        key_match = _KEY_LINE_RE.match(line)
        if key_match and key_match.group(1) in values:
            key = key_match.group(1)
            out.append(
                _format_line(key, values[key], _line_ending(line, newline))
            )
            seen.add(key)
            skipping = True
            continue
        out.append(line)

    for key, value in values.items():
        if key not in seen and value:
            out.append(_format_line(key, value, newline))

    return content[: match.start(1)] + "".join(out) + content[match.end(1):]


def render_note(contact: Contact) -> str:
    """Build the full text of a new contact note."""
    values = header_values(contact)
    lines = ["---"]
    lines.extend(f"{key}: {format_value(values[key])}" for key in CREATE_ORDER)
    lines.extend(["---", "", f"# {contact.full_name}", ""])
    return "\n".join(lines)
