"""Markdown note implementation of the local contact store.

Each contact lives in ``<collection>/<full name>.md``.  A note counts as a
contact when its header ``tags`` include ``contact``; notes without that
tag are ignored, and tagged notes without ``uid`` or ``fullName`` are
skipped with a warning.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..exceptions import LocalStoreError
from ..file_handler import (
    create_file,
    read_file_with_encoding,
    validate_output_path,
    write_file,
)
from ..validators import contact_filename
from .fields import LOCAL_FIELDS, contact_from_header, has_contact_tag, header_values
from .frontmatter import read_header, render_note, update_header
from .models import Contact, LocalRecord

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"


class MarkdownContactStore:
    """Read and write contact notes in a folder of Markdown files."""

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_contacts(self, collection_path: Path) -> list[LocalRecord]:
        """Return the contact notes directly inside *collection_path*.

        The folder is created when missing.  Notes are returned in
        filename order so runs are deterministic.

        Raises:
            LocalStoreError: If the folder cannot be created or listed.
        """
        folder = self.ensure_collection(collection_path)

        try:
            candidates = sorted(
                p
                for p in folder.iterdir()
                if p.is_file() and p.suffix.lower() == NOTE_SUFFIX
            )
        except OSError as exc:
            raise LocalStoreError(
                f"Cannot list contact folder {folder}: {exc}"
            ) from exc

        records: list[LocalRecord] = []
        for path in candidates:
            record = self._load_record(path)
            if record is not None:
                records.append(record)

        logger.debug("Found %d contact notes in %s", len(records), folder)
        return records

    def ensure_collection(self, collection_path: Path) -> Path:
        """Create the contact folder if needed and return its resolved path."""
        folder = Path(collection_path).expanduser().resolve()
        if folder.is_dir():
            return folder
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise LocalStoreError(
                f"Cannot create contact folder {folder}: {exc}"
            ) from exc
        logger.info("Created contact folder: %s", folder)
        return folder

    def _load_record(self, path: Path) -> LocalRecord | None:
        """Project one note into a ``LocalRecord``, or ``None`` to skip it."""
        try:
            content, _ = read_file_with_encoding(path)
            header = read_header(content)
        except (OSError, yaml.YAMLError, ValueError) as exc:
            logger.warning("Skipping unreadable note %s: %s", path, exc)
            return None

        if not header or not has_contact_tag(header.get("tags")):
            return None

        try:
            contact = contact_from_header(header)
        except ValidationError:
            logger.warning(
                "Skipping contact note %s: uid and fullName are required",
                path,
            )
            return None

        return LocalRecord(path=path, contact=contact)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def update_record(self, record: LocalRecord, contact: Contact) -> None:
        """Rewrite the known header fields of an existing note in place.

        Empty values clear the corresponding field.  ``uid``, ``tags``,
        unknown header lines and the body are left untouched.

        Raises:
            LocalStoreError: If the note cannot be read, has no header, or
                cannot be written.
        """
        values = header_values(contact)
        updates = {key: values[key] for key in LOCAL_FIELDS}

        try:
            content, encoding = read_file_with_encoding(record.path)
            updated = update_header(content, updates)
            if updated != content:
                write_file(record.path, updated, encoding)
        except (OSError, UnicodeError, ValueError) as exc:
            raise LocalStoreError(
                f"Cannot update contact note {record.path}: {exc}"
            ) from exc

    def create_record(self, collection_path: Path, contact: Contact) -> Path:
        """Write a new note for *contact* and return its path.

        The note is named after the full name.  When that file already
        exists the uid is appended (``Jane Doe (uid).md``); existing files
        are never overwritten.

        Raises:
            LocalStoreError: If no free filename exists or the write fails.
        """
        folder = self.ensure_collection(collection_path)
        content = render_note(contact)

        try:
            names = [
                contact_filename(contact.full_name),
                contact_filename(contact.full_name, suffix=contact.uid),
            ]
        except ValueError as exc:
            raise LocalStoreError(
                f"Cannot name note for contact {contact.uid}: {exc}"
            ) from exc

        for name in names:
            try:
                target = validate_output_path(
                    str(folder / name), base_dir=str(folder)
                )
                create_file(target, content)
            except FileExistsError:
                logger.info(
                    "Note %s already exists, trying next name for %s",
                    name,
                    contact.uid,
                )
                continue
            except (OSError, UnicodeError, ValueError) as exc:
                raise LocalStoreError(
                    f"Cannot create contact note {folder / name}: {exc}"
                ) from exc
            return target

        raise LocalStoreError(
            f"Cannot create note for contact {contact.uid}: "
            f"{names[0]} and {names[1]} already exist"
        )
