"""
Tests for the document codec (plain, compressed and legacy envelopes).
"""

import base64
import json
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from devspace_kernel.domain.codec import (
    COMPRESSED_TAG,
    EncodedFormat,
    decode,
    detect_format,
    encode,
    parse_export,
)
from devspace_kernel.domain.document import DATA_VERSION, Document, Metadata
from devspace_kernel.domain.entities import (
    Payment,
    PaymentStatus,
    Project,
    ProjectStatus,
    Task,
    TaskStatus,
)
from devspace_kernel.exceptions import DecodeError, ImportFormatError

NOW = datetime(2024, 1, 3, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def document():
    project = Project(
        id="p1",
        name="Site",
        client="Acme",
        budget=Decimal("1500"),
        status=ProjectStatus.IN_PROGRESS,
        created_at=NOW,
        updated_at=NOW,
    )
    task = Task(
        id="t1",
        name="Build",
        project_id="p1",
        status=TaskStatus.DONE,
        estimated_hours=Decimal("2.5"),
        created_at=NOW,
        updated_at=NOW,
        completed_at=NOW,
        extra={"color": "blue"},
    )
    payment = Payment(
        id="pay1",
        description="Deposit",
        amount=Decimal("99.95"),
        status=PaymentStatus.PENDING,
        created_at=NOW,
        updated_at=NOW,
    )
    return Document(
        metadata=Metadata.fresh(NOW),
        projects=(project,),
        tasks=(task,),
        payments=(payment,),
    )


def _legacy_base64(data: dict) -> str:
    return base64.b64encode(json.dumps(data).encode("utf-8")).decode("ascii")


class TestRoundTrip:
    """decode(encode(d)) == d in both forms."""

    def test_plain_round_trip(self, document):
        assert decode(encode(document)) == document

    def test_compressed_round_trip(self, document):
        encoded = encode(document, compressed=True)
        assert encoded.startswith(COMPRESSED_TAG)
        assert decode(encoded) == document

    def test_empty_document_round_trip(self):
        empty = Document.empty(NOW)
        assert decode(encode(empty, compressed=True)) == empty

    def test_unknown_keys_survive(self, document):
        decoded = decode(encode(document))
        assert decoded.tasks[0].extra == {"color": "blue"}
        assert json.loads(encode(decoded))["tasks"][0]["color"] == "blue"

    def test_pretty_output_is_indented(self, document):
        text = encode(document, pretty=True)
        assert text.startswith("{\n  ")
        assert decode(text) == document


class TestWireShape:
    """The persisted JSON uses the desktop app's camelCase keys."""

    def test_camel_case_keys_and_numbers(self, document):
        data = json.loads(encode(document))
        task = data["tasks"][0]
        assert task["projectId"] == "p1"
        assert task["estimatedHours"] == 2.5
        assert task["completedAt"] == "2024-01-03T12:00:00Z"
        assert data["projects"][0]["budget"] == 1500
        assert data["metadata"]["version"] == DATA_VERSION
        assert data["metadata"]["lastBackup"] is None

    def test_unset_completion_timestamp_omitted(self, document):
        data = json.loads(encode(document))
        assert "paidAt" not in data["payments"][0]

    def test_decimal_precision_kept(self, document):
        decoded = decode(encode(document))
        assert decoded.payments[0].amount == Decimal("99.95")

    @pytest.mark.parametrize("compressed", [False, True])
    def test_large_amount_keeps_every_digit(self, document, compressed):
        payment = replace(document.payments[0], amount=Decimal("12345678901234567.89"))
        large = replace(document, payments=(payment,))

        encoded = encode(large, compressed=compressed)

        assert decode(encoded).payments[0].amount == Decimal("12345678901234567.89")
        if not compressed:
            assert '"amount":12345678901234567.89' in encoded


class TestFormatDetection:
    """Envelope detection reads explicit tags only."""

    def test_detect_each_format(self, document):
        assert detect_format(encode(document)) is EncodedFormat.PLAIN
        assert detect_format(encode(document, compressed=True)) is EncodedFormat.COMPRESSED
        assert detect_format(_legacy_base64({"projects": []})) is EncodedFormat.LEGACY_BASE64

    def test_untagged_string_not_detected(self):
        assert detect_format("hello world") is None


class TestLegacyBase64:
    """Documents written by the 1.0.x app are read and migrated."""

    def test_legacy_document_decoded(self):
        raw = _legacy_base64(
            {
                "projects": [{"id": "p1", "name": "Old", "client": "C", "budget": "250"}],
                "tasks": [{"id": "t1", "title": "Legacy", "projectId": ""}],
                "schedules": [],
                "payments": [],
                "metadata": {
                    "version": "1.0.0",
                    "lastBackup": None,
                    "createdAt": "2023-06-01T08:00:00.000Z",
                    "updatedAt": "2023-06-02T08:00:00.000Z",
                },
            }
        )
        document = decode(raw, NOW)

        assert document.metadata.version == DATA_VERSION
        assert document.projects[0].budget == Decimal("250")
        assert document.tasks[0].name == "Legacy"
        assert document.tasks[0].project_id is None
        assert document.metadata.created_at == datetime(2023, 6, 1, 8, 0, tzinfo=timezone.utc)

    def test_accented_text_read_as_latin1_code_units(self):
        data = {
            "projects": [{"id": "p1", "name": "Café Redesign", "client": "Zoë Ltd"}],
            "tasks": [],
            "schedules": [],
            "payments": [],
        }
        raw = base64.b64encode(json.dumps(data, ensure_ascii=False).encode("latin-1")).decode("ascii")

        document = decode(raw, NOW)

        assert document.projects[0].name == "Café Redesign"
        assert document.projects[0].client == "Zoë Ltd"


class TestDecodeErrors:
    """Anything that is neither plain nor compressed is a DecodeError."""

    def test_untagged_text(self):
        with pytest.raises(DecodeError) as exc_info:
            decode("not a document")
        assert exc_info.value.raw_length == len("not a document")

    def test_corrupt_compressed_payload(self):
        with pytest.raises(DecodeError):
            decode(COMPRESSED_TAG + "!!!not-base64!!!")

    def test_invalid_json(self):
        with pytest.raises(DecodeError):
            decode("{not json")

    def test_missing_collections(self):
        with pytest.raises(DecodeError) as exc_info:
            decode('{"projects": [], "tasks": []}')
        assert isinstance(exc_info.value.__cause__, ImportFormatError)

    def test_invalid_enum_value(self):
        raw = json.dumps(
            {
                "projects": [{"id": "p1", "status": "Someday"}],
                "tasks": [],
                "schedules": [],
                "payments": [],
                "metadata": {"version": DATA_VERSION},
            }
        )
        with pytest.raises(DecodeError):
            decode(raw)

    def test_missing_metadata_synthesised(self):
        document = decode('{"projects":[],"tasks":[],"schedules":[],"payments":[]}', NOW)
        assert document.metadata.created_at == NOW
        assert document.metadata.last_backup is None


class TestParseExport:
    """parse_export reads plain export files only."""

    def test_reads_export(self, document):
        assert parse_export(encode(document, pretty=True), NOW) == document

    def test_rejects_compressed_form(self, document):
        with pytest.raises(ImportFormatError):
            parse_export(encode(document, compressed=True), NOW)

    def test_reports_missing_arrays(self):
        with pytest.raises(ImportFormatError) as exc_info:
            parse_export('{"projects": [], "tasks": {}}', NOW)
        assert exc_info.value.missing == ("tasks", "schedules", "payments")
