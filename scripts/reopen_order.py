#!/usr/bin/env python3
"""Reopen a saved electronic order and print its readiness.

Reads a saved-order export (catalog presets, order header and the flat
document record list), rebuilds the row tree against the configured
backend and prints the readiness report plus the payload that a save
would send.

Usage:
    python scripts/reopen_order.py saved_order.json

    # Show the submit payload instead of the draft one
    python scripts/reopen_order.py saved_order.json --submit

Input file format:
    {"catalog": {...}, "header": {...}, "records": [...]}
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from eorder.config import get_settings
from eorder.domain.payload import electronic_data
from eorder.domain.readiness import readiness_report
from eorder.infrastructure import ElectronicOrderClient
from eorder.observability import configure_logging
from eorder.orders import ElectronicOrderService


async def reopen(path: Path, submit: bool) -> int:
    saved = json.loads(path.read_text(encoding="utf-8"))

    async with ElectronicOrderClient() as client:
        service = ElectronicOrderService(client)
        await service.fetch_customers()
        result = await service.populate_existing_order(
            saved.get("catalog", {}),
            saved.get("header", {}),
            saved.get("records", []),
        )

    report = readiness_report(service.context)
    output = {
        "reconciled": result.success,
        "error": result.error_message,
        "rows": len(service.context.rows),
        "readiness": report,
        "payload": electronic_data(service.context, submit=submit),
    }
    print(json.dumps(output, indent=2, default=str))
    return 0 if result.success else 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Reopen a saved electronic order")
    parser.add_argument("saved_order", type=Path, help="Saved order JSON file")
    parser.add_argument("--submit", action="store_true", help="Build the submit payload (status O)")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    if not args.saved_order.exists():
        print(f"File not found: {args.saved_order}", file=sys.stderr)
        return 2
    return asyncio.run(reopen(args.saved_order, args.submit))


if __name__ == "__main__":
    sys.exit(main())
