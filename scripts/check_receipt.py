#!/usr/bin/env python3
"""Check payment receipts locally.

Runs the receipt verifier on PDF files with the expected payment facts
from the environment (or .env) and prints which checks failed.

Usage:
    python scripts/check_receipt.py path/to/receipt.pdf
    python scripts/check_receipt.py receipts/*.pdf --log-level DEBUG
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from confreg.config import get_settings
from confreg.core.models import ReceiptDocument
from confreg.core.pipeline import ReceiptVerifier
from confreg.extractors import PDFExtractor


def check_file(verifier: ReceiptVerifier, file_path: Path, expected) -> bool:
    """Verify one receipt and print the result."""
    print(f"\n{'='*60}")
    print(f"Checking: {file_path.name}")
    print(f"{'='*60}")

    document = ReceiptDocument(
        content=file_path.read_bytes(),
        media_type="application/pdf",
        filename=file_path.name,
    )
    result = verifier.verify(document, expected)

    if result.passed:
        print("Result: accepted")
    else:
        print("Result: rejected")
        for kind in result.failed_checks:
            print(f"  - {kind.code}: {kind.message}")

    return result.passed


def main():
    parser = argparse.ArgumentParser(description="Verify payment receipts")
    parser.add_argument("files", nargs="+", type=Path, help="PDF receipts to check")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = get_settings()
    expected = settings.expected_payment_facts
    verifier = ReceiptVerifier(
        max_size_bytes=settings.max_receipt_size_bytes,
        pdf_extractor=PDFExtractor(
            max_pages=settings.max_pdf_pages,
            time_budget_seconds=settings.pdf_parse_timeout_seconds,
        ),
    )

    print(f"Expected amount: {expected.amount} {expected.currency}")
    print(f"Expected INN: {expected.recipient_tax_id}")

    all_passed = True
    for file_path in args.files:
        if not file_path.exists():
            print(f"Error: File not found: {file_path}")
            all_passed = False
            continue
        all_passed = check_file(verifier, file_path, expected) and all_passed

    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
