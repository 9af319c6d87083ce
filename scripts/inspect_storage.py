#!/usr/bin/env python3
"""
Print what the local store holds: slot sizes, document contents,
integrity issues and dashboard statistics.

Usage:
    python3 scripts/inspect_storage.py [--config FILE] [--fix]

With --fix, orphaned records have their projectId cleared.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from devspace_config import get_active_config
from devspace_kernel.logging_config import configure_logging
from devspace_kernel.persistence.sql_storage import SqlSlotStorage
from devspace_kernel.services.data_store import DataStore
from devspace_kernel.utils.diagnostics import (
    analyze_document_size,
    document_checksum,
    storage_report,
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect the DevSpace store")
    parser.add_argument("--config", type=Path, default=None, help="settings override file")
    parser.add_argument("--fix", action="store_true", help="clear dangling projectIds")
    args = parser.parse_args()

    config = get_active_config(args.config)
    configure_logging(level=config.log_level)
    storage = SqlSlotStorage.from_url(config.database_url)

    try:
        report = storage_report(storage, [config.data_key, config.compression_key])
        print(f"Storage: {config.database_url}")
        for slot in report.items:
            print(f"  {slot.key:<20} {slot.size}")
        print(f"  {'total':<20} {report.total_size}")

        with DataStore.from_config(config, storage=storage) as store:
            document = store.document
            print(f"\nDocument v{document.metadata.version}  sha256 {document_checksum(document)[:16]}...")
            for row in analyze_document_size(document):
                print(f"  {row.collection:<10} {row.item_count:>5} items  {row.size}")

            result = store.validate_data()
            print("\nIntegrity: " + ("OK" if result.valid else "ISSUES FOUND"))
            for issue in result.issues:
                print(f"  {issue.type.value:<20} {issue.count}")

            if args.fix and result.has_orphans():
                fixed = store.fix_orphaned_records()
                print(f"  fixed {fixed.fixed} orphaned records")

            stats = store.get_statistics().to_dict()
            print("\nStatistics:")
            for section, values in stats.items():
                print(f"  {section}:")
                for key, value in values.items():
                    print(f"    {key:<24} {value}")
    finally:
        storage.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
