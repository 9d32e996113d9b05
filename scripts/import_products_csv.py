#!/usr/bin/env python3
"""
Product Catalog CSV Import

Imports a product catalog CSV into the products table, printing progress
as batches settle.

Usage:
    python scripts/import_products_csv.py catalog.csv                 # Import
    python scripts/import_products_csv.py catalog.csv --dry-run       # Validate only
    python scripts/import_products_csv.py catalog.csv --encoding latin-1
    python scripts/import_products_csv.py catalog.csv --batch-size 10 --delay 0
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse
from pathlib import Path

from config import configure_logging
from exceptions import AppError
from models.catalog_import import ImportSessionResponse
from services.import_service import CatalogImportService
from utils.text_utils import decode_csv_bytes, format_validation_errors


def print_progress(snapshot: ImportSessionResponse) -> None:
    stats = snapshot.stats
    print(
        f"\r  [{snapshot.phase.value:<9}] {snapshot.progress:>3}%  "
        f"ok={stats.success} failed={stats.failed} total={stats.total}",
        end="",
        flush=True
    )


def print_errors(title: str, errors: list) -> None:
    if not errors:
        return
    print(f"\n{title} ({len(errors)}):")
    for message in format_validation_errors(errors):
        print(f"  - {message}")


def dry_run(service: CatalogImportService, text: str) -> int:
    result = service.preview(text)

    print(f"Rows:    {result.total_rows}")
    print(f"Valid:   {len(result.records)}")
    print(f"Invalid: {len(result.errors)}")

    if result.records:
        print("\nFirst records:")
        for record in result.records[:10]:
            print(f"  {record.row_number:>4}  {record.name:<40} {record.category:<25} {record.unit}")

    print_errors("Validation errors", result.error_messages)
    return 0


def run_import(service: CatalogImportService, text: str, file_name: str) -> int:
    session = service.start_session(file_name=file_name)
    session.add_listener(print_progress)

    result = service.execute(text, session)
    print()

    print_errors("Validation errors", [str(e) for e in result.validation_errors])

    if result.failures:
        print(f"\nFailed records ({len(result.failures)}):")
        for failure in result.failures:
            print(f"  - {failure.name}: {failure.error}")

    if result.cancelled:
        print("\nImport cancelled")

    print(f"\n{session.summary()}")
    return 1 if result.stats.failed else 0


# ===================
# MAIN
# ===================

def main():
    parser = argparse.ArgumentParser(
        description="Import a product catalog CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/import_products_csv.py catalog.csv                # Import
  python scripts/import_products_csv.py catalog.csv --dry-run      # Validate only
        """
    )

    parser.add_argument("file", type=Path, help="CSV file to import")
    parser.add_argument(
        "--encoding",
        default=None,
        help="File encoding (default: UTF-8, falling back to Latin-1)"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Records submitted concurrently per batch (default: from settings)"
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=0.0,
        help="Seconds to pause between batches (default: 0)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and validate only; create nothing"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show per-batch log events (default: warnings only)"
    )

    args = parser.parse_args()
    configure_logging(level="INFO" if args.verbose else "WARNING")

    if not args.file.is_file():
        print(f"Error: File not found: {args.file}")
        sys.exit(1)

    if args.batch_size is not None and args.batch_size < 1:
        print(f"Error: Invalid --batch-size value: {args.batch_size}")
        sys.exit(1)

    try:
        text = decode_csv_bytes(args.file.read_bytes(), args.encoding)
    except (UnicodeDecodeError, LookupError) as e:
        print(f"Error: Could not decode {args.file} as {args.encoding}: {e}")
        sys.exit(1)

    print("=" * 50)
    print("PRODUCT CATALOG IMPORT" + (" (dry run)" if args.dry_run else ""))
    print(f"File: {args.file}")
    print("=" * 50)

    service = CatalogImportService(
        batch_size=args.batch_size,
        batch_delay_seconds=args.delay
    )

    try:
        if args.dry_run:
            code = dry_run(service, text)
        else:
            code = run_import(service, text, args.file.name)
    except AppError as e:
        print(f"\nError: {e.message}")
        sys.exit(2)

    sys.exit(code)


if __name__ == "__main__":
    main()
