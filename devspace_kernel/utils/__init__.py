"""Utility modules for the devspace kernel."""

from devspace_kernel.utils.diagnostics import (
    analyze_document_size,
    document_checksum,
    format_bytes,
    storage_report,
)
from devspace_kernel.utils.mock_data import generate_mock_document

__all__ = [
    "analyze_document_size",
    "document_checksum",
    "format_bytes",
    "generate_mock_document",
    "storage_report",
]
