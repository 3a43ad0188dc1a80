"""
ingest.py — wing items ingestion script.

Reads the flat items file (JSON array or CSV, one row per wing item with its
restaurant's fields repeated), normalises it, adds content-derived item keys
and writes it to the database.

Usage:
    python scripts/ingest.py --input data/items.json               # full ingest
    python scripts/ingest.py --input data/items.json --dry-run     # parse, no DB writes
    python scripts/ingest.py --input data/items.json --clear       # wipe, then ingest
    python scripts/ingest.py --input data/items.json --write-keys  # also save itemKey back to the file
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from collections import Counter
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).parent.parent))

from wingfinder.database import AsyncSessionLocal, engine
from wingfinder.models import Base  # noqa: F401
from wingfinder.schemas.location import ItemRecord
from wingfinder.services.ingestion import clear_all_data, migrate_items
from wingfinder.services.location_aggregator import parse_wing_types
from wingfinder.utils.keys import generate_item_key

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

_BOOL_COLUMNS = (
    "glutenFree", "allowMinors", "allowTakeout", "allowDelivery", "purchaseLimits",
)

# ── Column mapping helpers ───────────────────────────────────────────────────


def _parse_bool(val: object) -> bool:
    """Accept booleans, 1/0 and yes/no/true/false strings; anything else is False."""
    if isinstance(val, bool):
        return val
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return False
    return str(val).strip().lower() in ("true", "yes", "y", "1")


def _parse_hours(val: object) -> list[dict[str, Any]]:
    """Hours arrive as a list (JSON input) or a JSON-encoded string (CSV input)."""
    if isinstance(val, list):
        return [h for h in val if isinstance(h, dict)]
    if isinstance(val, str) and val.strip():
        try:
            parsed = json.loads(val)
        except json.JSONDecodeError:
            return []
        return [h for h in parsed if isinstance(h, dict)] if isinstance(parsed, list) else []
    return []


def _clean(val: object) -> object:
    """pandas NaN → None, strings stripped."""
    if isinstance(val, float) and pd.isna(val):
        return None
    if isinstance(val, str):
        return val.strip()
    return val


def load_frame(path: Path) -> pd.DataFrame:
    """Read the items file into a DataFrame based on its extension."""
    if path.suffix.lower() == ".csv":
        return pd.read_csv(path)
    return pd.read_json(path, orient="records", dtype=False, convert_dates=False)


def frame_to_records(df: pd.DataFrame) -> list[ItemRecord]:
    """Normalise rows and validate them as ItemRecords; invalid rows are logged and dropped."""
    records: list[ItemRecord] = []
    for index, row in enumerate(df.to_dict(orient="records")):
        data = {key: _clean(value) for key, value in row.items()}
        for column in _BOOL_COLUMNS:
            data[column] = _parse_bool(row.get(column))
        data["hours"] = _parse_hours(row.get("hours"))
        data["type"] = ", ".join(parse_wing_types(data.get("type")))

        if not data.get("itemKey"):
            data["itemKey"] = generate_item_key(
                str(data.get("restaurantName") or ""),
                str(data.get("itemName") or ""),
                str(data.get("address") or ""),
            )
        try:
            records.append(ItemRecord.model_validate(data))
        except ValidationError as exc:
            logger.warning("Row %d rejected: %s", index, exc.errors()[:1])
    return records


def report_duplicates(records: list[ItemRecord]) -> list[str]:
    """Log and return item keys that occur more than once."""
    counts = Counter(r.item_key for r in records)
    duplicates = sorted(k for k, n in counts.items() if n > 1)
    if duplicates:
        logger.warning("Found %d duplicate item keys: %s", len(duplicates), duplicates[:10])
    else:
        logger.info("All item keys are unique")
    return duplicates


def write_keys(path: Path) -> None:
    """Save the computed itemKey column back into a JSON items file."""
    if path.suffix.lower() != ".json":
        logger.warning("--write-keys only supports JSON input; skipping")
        return
    raw = json.loads(path.read_text(encoding="utf-8"))
    for row in raw:
        if not row.get("itemKey"):
            row["itemKey"] = generate_item_key(
                row.get("restaurantName", ""), row.get("itemName", ""), row.get("address", "")
            )
    path.write_text(json.dumps(raw, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Wrote item keys for %d rows back to %s", len(raw), path)


async def ingest(path: Path, dry_run: bool, clear: bool, save_keys: bool) -> Optional[int]:
    start = time.monotonic()
    df = load_frame(path)
    logger.info("Read %d rows from %s", len(df), path)

    records = frame_to_records(df)
    report_duplicates(records)
    type_counts = Counter(t for r in records for t in parse_wing_types(r.type))
    logger.info("Wing types: %s", dict(type_counts))

    if save_keys:
        write_keys(path)

    if dry_run:
        logger.info("Dry run — %d valid records, nothing written", len(records))
        return None

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        if clear:
            await clear_all_data(session)
        result = await migrate_items(session, records)

    await engine.dispose()
    logger.info(
        "Ingest finished in %.1fs: %d locations, %d items, %d hours created",
        time.monotonic() - start,
        result.locations_created, result.items_created, result.hours_created,
    )
    return result.items_created


def main() -> None:
    parser = argparse.ArgumentParser(description="Ingest wing items into the database.")
    parser.add_argument("--input", required=True, type=Path, help="items .json or .csv file")
    parser.add_argument("--dry-run", action="store_true", help="parse only, no DB writes")
    parser.add_argument("--clear", action="store_true", help="delete existing data first")
    parser.add_argument("--write-keys", action="store_true", help="save itemKey back to the JSON file")
    args = parser.parse_args()

    if not args.input.exists():
        logger.error("Input file not found: %s", args.input)
        sys.exit(1)

    asyncio.run(ingest(args.input, args.dry_run, args.clear, args.write_keys))


if __name__ == "__main__":
    main()
