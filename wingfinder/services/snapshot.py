"""
Static items snapshot — a JSON array of flat item records shipped with the app.

Caching:
  Key:  resolved file path
  TTL:  SNAPSHOT_CACHE_TTL seconds, so an updated file is picked up without restart
  Bad rows are skipped with a warning; a missing file yields an empty list.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from cachetools import TTLCache
from pydantic import ValidationError

from wingfinder.config import settings
from wingfinder.schemas.location import ItemRecord

logger = logging.getLogger(__name__)

_cache_snapshot: TTLCache = TTLCache(maxsize=8, ttl=settings.snapshot_cache_ttl)


def parse_snapshot_rows(rows: list) -> list[ItemRecord]:
    """Validate raw JSON rows into ItemRecords, dropping the ones that fail."""
    records: list[ItemRecord] = []
    for index, row in enumerate(rows):
        try:
            records.append(ItemRecord.model_validate(row))
        except ValidationError as exc:
            logger.warning("Skipping snapshot row %d: %s", index, exc.errors()[:1])
    return records


def load_snapshot(path: Optional[str] = None) -> list[ItemRecord]:
    """Return the snapshot's item records, cached per path."""
    path = path or settings.snapshot_path
    if not path:
        return []

    cache_key = str(Path(path).resolve())
    if cache_key in _cache_snapshot:
        return _cache_snapshot[cache_key]

    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("Snapshot file not found: %s", path)
        return []
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not read snapshot %s: %s", path, exc)
        return []

    if not isinstance(raw, list):
        logger.error("Snapshot %s is not a JSON array", path)
        return []

    records = parse_snapshot_rows(raw)
    _cache_snapshot[cache_key] = records
    logger.info("Loaded %d item records from snapshot %s", len(records), path)
    return records


def clear_snapshot_cache() -> None:
    _cache_snapshot.clear()
