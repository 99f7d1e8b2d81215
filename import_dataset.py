#!/usr/bin/env python
"""
CSV Dataset Import Script

Imports a retail snapshot (customers.csv, products.csv, transactions.csv)
into the Retail Window Analytics API. Reference data is sent before facts
so every transaction finds its customer and product.

Usage:
    python import_dataset.py data
    python import_dataset.py data --batch-size 100
    python import_dataset.py data --url http://localhost:8000
"""
import argparse
import csv
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx


def normalize_money(value: str) -> str:
    """
    Normalize a monetary value to 2 decimal places.

    Args:
        value: Amount as string

    Returns:
        Amount string with exactly 2 decimal places

    Raises:
        ValueError: If the value is not a positive number
    """
    try:
        amount = Decimal(value).quantize(Decimal("0.01"))
    except InvalidOperation as e:
        raise ValueError(f"invalid amount {value!r}") from e
    if amount <= 0:
        raise ValueError(f"amount must be positive, got {value!r}")
    return str(amount)


def customer_row(row: Dict[str, str]) -> Dict[str, Any]:
    return {
        "customer_id": int(row["customer_id"]),
        "name": row["name"].strip()[:100],
        "region": row["region"].strip(),
        "signup_date": date.fromisoformat(row["signup_date"].strip()).isoformat(),
    }


def product_row(row: Dict[str, str]) -> Dict[str, Any]:
    return {
        "product_id": int(row["product_id"]),
        "name": row["name"].strip()[:100],
        "category": row["category"].strip()[:50],
        "unit_price": normalize_money(row["unit_price"]),
    }


def transaction_row(row: Dict[str, str]) -> Dict[str, Any]:
    quantity = int(row["quantity"])
    if quantity <= 0:
        raise ValueError(f"quantity must be positive, got {quantity}")
    return {
        "transaction_id": int(row["transaction_id"]),
        "customer_id": int(row["customer_id"]),
        "product_id": int(row["product_id"]),
        "sale_date": date.fromisoformat(row["sale_date"].strip()).isoformat(),
        "amount": normalize_money(row["amount"]),
        "quantity": quantity,
    }


def read_csv_rows(
    file_path: Path,
    convert: Callable[[Dict[str, str]], Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Read and convert the rows of one CSV file, skipping invalid rows.

    Args:
        file_path: Path to CSV file
        convert: Row converter producing an API payload

    Returns:
        List of payload dictionaries
    """
    records = []
    with open(file_path, "r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for i, row in enumerate(reader):
            try:
                records.append(convert(row))
            except (ValueError, KeyError) as e:
                print(f"⚠️  Skipping {file_path.name} row {i + 2}: {e}", file=sys.stderr)
    return records


def send_batches(
    client: httpx.Client,
    resource: str,
    records: List[Dict[str, Any]],
    batch_size: int,
) -> int:
    """
    Post records to ``/{resource}/batch`` in chunks.

    Returns:
        Number of records the API reports as created

    Raises:
        httpx.HTTPError: If an API request fails
    """
    created = 0
    for i in range(0, len(records), batch_size):
        batch = records[i:i + batch_size]
        response = client.post(f"/{resource}/batch", json={resource: batch})
        response.raise_for_status()
        created += response.json()["created"]
        print(f"   ✓ {resource} batch {i // batch_size + 1}: {len(batch)} record(s)")
    return created


def main():
    """Main entry point for the script."""
    parser = argparse.ArgumentParser(
        description="Import a retail CSV snapshot into the Retail Window Analytics API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data
  %(prog)s data --batch-size 500
  %(prog)s data --url http://localhost:8000 --timeout 60
        """
    )
    parser.add_argument(
        "directory",
        type=Path,
        help="Directory with customers.csv, products.csv and transactions.csv"
    )
    parser.add_argument(
        "--url",
        type=str,
        default="http://localhost:8000",
        help="Base API URL (default: http://localhost:8000)"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=500,
        help="Number of records per batch request (default: 500)"
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=30,
        help="Request timeout in seconds (default: 30)"
    )
    args = parser.parse_args()

    files = {
        "customers": (args.directory / "customers.csv", customer_row),
        "products": (args.directory / "products.csv", product_row),
        "transactions": (args.directory / "transactions.csv", transaction_row),
    }
    for path, _ in files.values():
        if not path.is_file():
            print(f"❌ Error: File not found: {path}", file=sys.stderr)
            sys.exit(1)

    try:
        with httpx.Client(base_url=args.url, timeout=args.timeout) as client:
            # Order matters: transactions reference customers and products
            for resource, (path, convert) in files.items():
                records = read_csv_rows(path, convert)
                print(f"📂 {path}: {len(records)} valid row(s)")
                if not records:
                    continue
                created = send_batches(client, resource, records, args.batch_size)
                print(f"✅ Created {created} {resource}")
    except httpx.HTTPStatusError as e:
        print(f"❌ API error {e.response.status_code}: {e.response.text}", file=sys.stderr)
        sys.exit(1)
    except httpx.HTTPError as e:
        print(f"❌ Request failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
