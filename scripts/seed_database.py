#!/usr/bin/env python3
"""
Marina database seeder.

Writes the sample dataset into the configured DuckDB file so the API can run
in database (live) mode. The default of 50 records per type matches the
counts the validation harness expects for the database source.

Usage:
    python scripts/seed_database.py
    python scripts/seed_database.py --records 50 --seed 7
    python scripts/seed_database.py --db-path ./data/other.duckdb
"""

import argparse
import logging
import sys

import structlog

from marinaops.config import get_settings
from marinaops.engine.data_source.validation import DATA_TYPE_TABLES, expected_count
from marinaops.engine.sample_data import build_sample_dataset
from marinaops.models.enums import DataSourceMode
from marinaops.storage.duckdb_storage import DuckDBStorage, StorageError

logger = structlog.get_logger()


def check_counts(storage: DuckDBStorage) -> bool:
    """Print stored counts against the database expectations; True if all match."""
    print("\n" + "=" * 60)
    print("EXPECTED COUNT CHECK (database mode)")
    print("=" * 60)
    all_match = True
    for data_type, table in DATA_TYPE_TABLES.items():
        actual = storage.count_records(table)
        expected = expected_count(data_type, DataSourceMode.DATABASE)
        status = "PASS" if actual == expected else "FAIL"
        all_match = all_match and actual == expected
        print(f"  [{status}] {data_type:<12} expected {expected:>4}, got {actual:>4}")
    print("=" * 60)
    return all_match


def main():
    """Main entry point for database seeding script."""
    parser = argparse.ArgumentParser(
        description="Seed the marina DuckDB database with sample records"
    )
    parser.add_argument(
        "--records",
        type=int,
        default=50,
        help="Records per type (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility (default: SAMPLE_SEED setting)",
    )
    parser.add_argument(
        "--db-path",
        type=str,
        default=None,
        help="DuckDB file to write (default: DB_PATH setting)",
    )

    args = parser.parse_args()

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    settings = get_settings()
    db_path = args.db_path or settings.db_path
    seed = settings.sample_seed if args.seed is None else args.seed

    logger.info("database_seeder_started", db_path=db_path, records=args.records, seed=seed)

    try:
        dataset = build_sample_dataset(
            records_per_type=args.records,
            seed=seed,
            password=settings.demo_user_password,
        )
        storage = DuckDBStorage(db_path=db_path, recent_payment_days=settings.recent_payment_days)
        written = storage.load_dataset(dataset)
        for table, count in written.items():
            print(f"  {table:<14} {count:>6}")

        check_counts(storage)
        storage.close()
    except StorageError as e:
        logger.error("database_seeding_failed", error=str(e), exc_info=True)
        print(f"\nSeeding failed: {e}\n")
        sys.exit(1)

    logger.info("database_seeding_successful")
    print("\nSeeding completed successfully!\n")


if __name__ == "__main__":
    main()
