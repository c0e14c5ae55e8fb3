"""
Batch commit engine shared by the procured-medicine and IAR uploads.

Given prepared rows in upload order, it drops repeats within the batch,
skips keys already stored, inserts the rest in one conflict-tolerant bulk
statement and returns a per-row ledger.

The unique constraint on each table is what actually guarantees that a key
is stored once. The existence check here only avoids sending inserts that are
bound to be rejected; a concurrent commit can still win the race, in which
case the row is reported as already existing.
"""

import logging
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import RECONCILE_CHUNK_SIZE
from exceptions import BatchFatalError
from utils.normalizers import parse_iso_date

logger = logging.getLogger(__name__)

RESULT_INSERTED = "inserted"
RESULT_SKIPPED = "skipped"
REASON_ALREADY_EXISTS = "already_exists"
REASON_DUPLICATE_IN_UPLOAD = "duplicate_in_upload"

# Dialects with INSERT ... ON CONFLICT DO NOTHING ... RETURNING
UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

Key = Tuple


class CommitResult(NamedTuple):
    inserted_count: int
    total_received: int
    skipped_duplicates: int
    logs: List[dict]


def chunked(items: Sequence, size: int) -> Iterable[Sequence]:
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def strict_commit_date(value, label: str, row_number: int):
    """ISO date of a committed row, or BatchFatalError naming the spreadsheet row."""
    try:
        return parse_iso_date(value)
    except (ValueError, OverflowError):
        raise BatchFatalError(f"Invalid {label} at row {row_number}: {value}")


def key_of(row: dict, key_fields: Sequence[str]) -> Key:
    return tuple(row[field] for field in key_fields)


def find_existing_keys(
    db: Session,
    model,
    key_fields: Sequence[str],
    keys: Sequence[Key],
    chunk_size: int = RECONCILE_CHUNK_SIZE,
) -> Set[Key]:
    """Return which of ``keys`` are already stored, querying ``chunk_size`` keys at a time."""
    columns = [getattr(model, field) for field in key_fields]
    existing: Set[Key] = set()
    for group in chunked(list(keys), chunk_size):
        conditions = [
            and_(*[column == value for column, value in zip(columns, key)])
            for key in group
        ]
        for found in db.query(*columns).filter(or_(*conditions)).all():
            existing.add(tuple(found))
    return existing


def insert_ignoring_conflicts(
    db: Session,
    model,
    payload: List[dict],
    key_fields: Sequence[str],
) -> Set[Key]:
    """
    Insert ``payload`` in bulk, silently skipping rows that hit the unique key.

    Returns the keys that were actually written; the database is the source of
    truth for what got in.
    """
    if not payload:
        return set()

    table = model.__table__
    key_columns = [table.c[field] for field in key_fields]
    dialect = db.get_bind().dialect.name

    insert_fn = UPSERT_DIALECTS.get(dialect)
    if insert_fn is not None:
        stmt = (
            insert_fn(table)
            .on_conflict_do_nothing(index_elements=list(key_fields))
            .returning(*key_columns)
        )
        result = db.execute(stmt, payload)
        return {tuple(row) for row in result.all()}

    # Other backends: one savepoint per row so a conflict only loses that row
    inserted: Set[Key] = set()
    for values in payload:
        try:
            with db.begin_nested():
                db.execute(table.insert().values(**values))
        except IntegrityError:
            continue
        inserted.add(key_of(values, key_fields))
    return inserted


def _ledger_entry(row_index: int, row: dict, log_fields: Sequence[str], result: str, reason: Optional[str] = None) -> dict:
    entry = {"row_index": row_index}
    for field in log_fields:
        entry[field] = row[field]
    entry["result"] = result
    entry["reason"] = reason
    return entry


def reconcile_batch(
    db: Session,
    model,
    rows: List[dict],
    key_fields: Sequence[str],
    enrich: Optional[Callable[[Session, List[dict]], None]] = None,
    chunk_size: int = RECONCILE_CHUNK_SIZE,
) -> CommitResult:
    """
    Commit prepared ``rows`` (column-name dicts, in upload order) for ``model``.

    1. A key seen earlier in the batch is skipped as ``duplicate_in_upload``.
    2. Keys already stored are skipped as ``already_exists``.
    3. ``enrich`` may fill derived columns on the rows about to be inserted.
    4. The remaining rows go in with a single conflict-tolerant bulk insert.

    Every received row gets exactly one ledger entry, sorted by upload order,
    so ``inserted_count + skipped_duplicates == total_received``.
    """
    ledger: List[dict] = []
    unique_rows: List[Tuple[int, dict, Key]] = []
    seen: Set[Key] = set()

    for row_index, row in enumerate(rows):
        key = key_of(row, key_fields)
        if key in seen:
            ledger.append(_ledger_entry(row_index, row, key_fields, RESULT_SKIPPED, REASON_DUPLICATE_IN_UPLOAD))
            continue
        seen.add(key)
        unique_rows.append((row_index, row, key))

    existing = find_existing_keys(db, model, key_fields, [key for _, _, key in unique_rows], chunk_size)

    to_insert: List[Tuple[int, dict, Key]] = []
    for row_index, row, key in unique_rows:
        if key in existing:
            ledger.append(_ledger_entry(row_index, row, key_fields, RESULT_SKIPPED, REASON_ALREADY_EXISTS))
        else:
            to_insert.append((row_index, row, key))

    payload = [dict(row) for _, row, _ in to_insert]

    try:
        if enrich is not None and payload:
            enrich(db, payload)
        inserted_keys = insert_ignoring_conflicts(db, model, payload, key_fields)
        db.commit()
    except Exception:
        db.rollback()
        raise

    for row_index, row, key in to_insert:
        if key in inserted_keys:
            ledger.append(_ledger_entry(row_index, row, key_fields, RESULT_INSERTED))
        else:
            logger.warning(f"{model.__tablename__} key {key} was committed concurrently; reporting it as already existing")
            ledger.append(_ledger_entry(row_index, row, key_fields, RESULT_SKIPPED, REASON_ALREADY_EXISTS))

    ledger.sort(key=lambda entry: entry["row_index"])
    skipped = sum(1 for entry in ledger if entry["result"] == RESULT_SKIPPED)

    return CommitResult(
        inserted_count=len(inserted_keys),
        total_received=len(rows),
        skipped_duplicates=skipped,
        logs=ledger,
    )


def ledger_without_positions(logs: List[dict]) -> List[Dict[str, object]]:
    """Drop the internal row position before the ledger leaves the service."""
    return [{k: v for k, v in entry.items() if k != "row_index"} for entry in logs]
