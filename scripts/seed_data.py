#!/usr/bin/env python3
"""
Seed the local store with a realistic set of mock projects.

Replaces the persisted document with a generated one: projects with their
tasks, schedule events and payments, reproducible from a seed.

Usage:
    python3 scripts/seed_data.py [--seed N] [--projects N] [--config FILE] [--compressed]
"""

import argparse
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from devspace_config import get_active_config
from devspace_kernel.domain.clock import SystemClock
from devspace_kernel.domain.codec import encode
from devspace_kernel.logging_config import configure_logging
from devspace_kernel.services.data_store import open_data_store
from devspace_kernel.utils.diagnostics import analyze_document_size
from devspace_kernel.utils.mock_data import generate_mock_document


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the DevSpace store with mock data")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--projects", type=int, default=5)
    parser.add_argument("--config", type=Path, default=None, help="settings override file")
    parser.add_argument("--compressed", action="store_true", help="store the compressed form")
    args = parser.parse_args()

    config = get_active_config(args.config)
    configure_logging(level=config.log_level)
    clock = SystemClock()

    document = generate_mock_document(clock.now(), seed=args.seed, projects=args.projects)

    with open_data_store(config, clock=clock) as store:
        if not store.import_data(encode(document)):
            print("Error: generated document was rejected", file=sys.stderr)
            return 1
        if store.use_compression != args.compressed:
            store.toggle_compression()
        print(f"Seeded {config.database_url}")
        for row in analyze_document_size(store.document):
            print(f"  {row.collection:<10} {row.item_count:>5} items  {row.size}")
        print(f"  compression: {'on' if store.use_compression else 'off'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
