"""
Codec -- Document <-> persisted string.

Responsibility:
    ``encode`` renders a Document as plain JSON text or, when asked, as a
    compressed envelope.  ``decode`` accepts any form this app has ever
    written and returns a Document at the current data version.
    ``parse_export`` reads the plain JSON files produced by export and
    backup.

Architecture position:
    Kernel > Domain -- pure transform, zero I/O.

Formats:
    plain       JSON text, first non-blank character ``{``.
    compressed  ``DSZ1:`` + base64(zlib(JSON text, UTF-8)).
    legacy      base64(JSON text) with no tag, as written by the 1.0.x
                desktop app (always begins ``eyJ``).  Read-only.  The payload
                bytes are Latin-1 code units, one per character.

Invariants enforced:
    - decode(encode(d, compressed=c)) == d for every Document d and flag c.
    - The format is read from an explicit tag, never from trial parsing:
      a string that carries no known tag is rejected.

Failure modes:
    - DecodeError for untagged input, bad base64/zlib/JSON, a top level
      without the four collection arrays, a failed migration, or an invalid
      record.
"""

from __future__ import annotations

import base64
import binascii
import zlib
from datetime import datetime
from enum import Enum

from devspace_kernel.domain.clock import SystemClock
from devspace_kernel.domain.document import Document
from devspace_kernel.domain.migrations import migrate_document
from devspace_kernel.domain.serialization import (
    check_document_shape,
    document_from_dict,
    document_to_dict,
    dumps,
    loads,
)
from devspace_kernel.exceptions import (
    DecodeError,
    DocumentError,
    ImportFormatError,
    MigrationError,
)

COMPRESSED_TAG = "DSZ1:"
LEGACY_BASE64_PREFIX = "eyJ"


class EncodedFormat(str, Enum):
    PLAIN = "plain"
    COMPRESSED = "compressed"
    LEGACY_BASE64 = "legacy_base64"


def detect_format(raw: str) -> EncodedFormat | None:
    """Identify the envelope of ``raw``; None if it carries no known tag."""
    text = raw.lstrip()
    if text.startswith(COMPRESSED_TAG):
        return EncodedFormat.COMPRESSED
    if text.startswith("{"):
        return EncodedFormat.PLAIN
    if text.startswith(LEGACY_BASE64_PREFIX):
        return EncodedFormat.LEGACY_BASE64
    return None


def encode(document: Document, *, compressed: bool = False, pretty: bool = False) -> str:
    """
    Serialize ``document``.

    ``pretty`` only affects the plain form; the compressed form is always
    built from the compact text.
    """
    data = document_to_dict(document)
    if not compressed:
        return dumps(data, pretty=pretty)
    packed = zlib.compress(dumps(data).encode("utf-8"), level=9)
    return COMPRESSED_TAG + base64.b64encode(packed).decode("ascii")


def _unwrap(raw: str, fmt: EncodedFormat) -> str:
    text = raw.strip()
    try:
        if fmt is EncodedFormat.COMPRESSED:
            packed = base64.b64decode(text[len(COMPRESSED_TAG):], validate=True)
            return zlib.decompress(packed).decode("utf-8")
        if fmt is EncodedFormat.LEGACY_BASE64:
            return base64.b64decode(text, validate=True).decode("latin-1")
    except (binascii.Error, zlib.error, UnicodeDecodeError) as exc:
        raise DecodeError(f"corrupt {fmt.value} envelope: {exc}", len(raw)) from exc
    return text


def decode(raw: str, now: datetime | None = None) -> Document:
    """
    Parse a persisted string into a Document at the current data version.

    ``now`` stamps synthesised metadata when the stored document has none;
    it defaults to the system clock.
    """
    fmt = detect_format(raw)
    if fmt is None:
        raise DecodeError("unrecognised format", len(raw))

    text = _unwrap(raw, fmt)
    try:
        data = loads(text)
    except ValueError as exc:
        raise DecodeError(f"invalid JSON in {fmt.value} form: {exc}", len(raw)) from exc

    try:
        check_document_shape(data)
        migrated = migrate_document(data)
        return document_from_dict(migrated.data, now or SystemClock().now())
    except DocumentError as exc:
        raise DecodeError(str(exc), len(raw)) from exc


def parse_export(text: str, now: datetime) -> Document:
    """
    Parse exported JSON text (an import file or a backup) into a Document.

    Unlike ``decode`` this accepts only plain JSON, the form the app
    exports, and reports every problem as ImportFormatError.
    """
    try:
        data = loads(text)
    except ValueError as exc:
        raise ImportFormatError(f"not valid JSON: {exc}") from exc
    check_document_shape(data)
    try:
        migrated = migrate_document(data)
    except MigrationError as exc:
        raise ImportFormatError(str(exc)) from exc
    return document_from_dict(migrated.data, now)
