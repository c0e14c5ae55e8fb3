import datetime

import pytest

import crud.reconciliation as reconciliation
from crud.iar import commit_iars
from crud.procured_meds import commit_procured_meds
from crud.reconciliation import chunked, find_existing_keys, ledger_without_positions, reconcile_batch
from exceptions import BatchFatalError
from models.iar import Iar
from models.procured_meds import ProcuredMed
from schemas.iar import IarRow
from schemas.procured_meds import ProcuredMedRow


def med_row(po_number="PO-1", item_no=1, **fields):
    fields.setdefault("po_date", "2026-01-10")
    return ProcuredMedRow(po_number=po_number, item_no=item_no, **fields)


def iar_row(iar_number="IAR-1", po_number="PO-1", item_number=1, **fields):
    fields.setdefault("date_of_inspection", "2026-02-01")
    fields.setdefault("inspected_quantity", 10)
    return IarRow(iar_number=iar_number, po_number=po_number, item_number=item_number, **fields)


def test_chunked():
    assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]
    with pytest.raises(ValueError):
        list(chunked([1], 0))


def test_duplicates_within_upload_and_in_storage(db):
    db.add(ProcuredMed(po_number="PO-1", item_no=1, quantity=5))
    db.commit()

    rows = [med_row(item_no=1), med_row(item_no=2), med_row(item_no=2), med_row(item_no=3)]
    result = commit_procured_meds(db, rows)

    assert result.total_received == 4
    assert result.inserted_count == 2
    assert result.skipped_duplicates == 2
    assert result.inserted_count + result.skipped_duplicates == result.total_received
    assert [(log["item_no"], log["result"], log["reason"]) for log in result.logs] == [
        (1, "skipped", "already_exists"),
        (2, "inserted", None),
        (2, "skipped", "duplicate_in_upload"),
        (3, "inserted", None),
    ]
    assert db.query(ProcuredMed).count() == 3


def test_recommitting_same_batch_inserts_nothing(db):
    rows = [med_row(item_no=1), med_row(item_no=2)]
    first = commit_procured_meds(db, rows)
    second = commit_procured_meds(db, rows)

    assert first.inserted_count == 2
    assert second.inserted_count == 0
    assert all(log["reason"] == "already_exists" for log in second.logs)


def test_prepared_values_are_stored(db):
    commit_procured_meds(db, [med_row(supplier="  Acme  ", acquisition_cost="10.005", po_date="2026-01-10")])
    stored = db.query(ProcuredMed).one()
    assert stored.supplier == "Acme"
    assert stored.po_date == datetime.date(2026, 1, 10)
    assert str(stored.acquisition_cost) == "10.01"


def test_invalid_date_aborts_whole_batch(db):
    rows = [med_row(item_no=1), med_row(item_no=2, po_date="2024-13-40")]
    with pytest.raises(BatchFatalError) as exc_info:
        commit_procured_meds(db, rows)
    assert str(exc_info.value) == "Invalid PO date at row 3: 2024-13-40"
    assert db.query(ProcuredMed).count() == 0


def test_invalid_iar_expiration_date_aborts(db):
    with pytest.raises(BatchFatalError) as exc_info:
        commit_iars(db, [iar_row(expiration_date="June 2027")])
    assert "Invalid expiration date at row 2" in str(exc_info.value)


def test_existing_key_lookup_is_chunked(db):
    for item_no in range(1, 6):
        db.add(ProcuredMed(po_number="PO-1", item_no=item_no))
    db.commit()

    keys = [("PO-1", n) for n in range(1, 8)]
    existing = find_existing_keys(db, ProcuredMed, ("po_number", "item_no"), keys, chunk_size=2)
    assert existing == {("PO-1", n) for n in range(1, 6)}


def test_small_chunks_give_same_result(db):
    db.add(ProcuredMed(po_number="PO-2", item_no=2))
    db.commit()
    rows = [
        {"po_number": "PO-2", "item_no": n, "po_date": None}
        for n in (1, 2, 3)
    ]
    result = reconcile_batch(db, ProcuredMed, rows, ("po_number", "item_no"), chunk_size=1)
    assert result.inserted_count == 2
    assert result.skipped_duplicates == 1


def test_row_lost_to_concurrent_commit_is_reported_as_existing(db, monkeypatch):
    db.add(ProcuredMed(po_number="PO-1", item_no=1))
    db.commit()

    # Simulate another writer committing between the existence check and the insert
    monkeypatch.setattr(reconciliation, "find_existing_keys", lambda *args, **kwargs: set())

    result = commit_procured_meds(db, [med_row(item_no=1), med_row(item_no=2)])
    assert result.inserted_count == 1
    assert result.skipped_duplicates == 1
    assert result.logs[0]["result"] == "skipped"
    assert result.logs[0]["reason"] == "already_exists"
    assert result.logs[1]["result"] == "inserted"


def test_iar_commit_backfills_manufacturer(db):
    db.add(ProcuredMed(po_number="PO-1", item_no=1, manufacturer="  Unilab  "))
    db.add(ProcuredMed(po_number="PO-1", item_no=2, manufacturer="   "))
    db.commit()

    result = commit_iars(db, [
        iar_row(item_number=1),
        iar_row(item_number=2),
        iar_row(item_number=3),
    ])

    assert result.inserted_count == 3
    stored = {iar.item_number: iar.manufacturer for iar in db.query(Iar).all()}
    assert stored == {1: "Unilab", 2: None, 3: None}


def test_iar_key_includes_iar_number(db):
    result = commit_iars(db, [
        iar_row(iar_number="IAR-1", item_number=1),
        iar_row(iar_number="IAR-2", item_number=1),
        iar_row(iar_number="IAR-1", item_number=1),
    ])
    assert result.inserted_count == 2
    assert result.logs[2]["reason"] == "duplicate_in_upload"


def test_ledger_without_positions():
    logs = [{"row_index": 0, "po_number": "PO-1", "item_no": 1, "result": "inserted", "reason": None}]
    assert ledger_without_positions(logs) == [
        {"po_number": "PO-1", "item_no": 1, "result": "inserted", "reason": None}
    ]
