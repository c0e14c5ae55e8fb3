import datetime

from models.iar import Iar
from models.procured_meds import ProcuredMed
from scripts.backfill_iar_manufacturer import backfill_iar_manufacturer


def test_backfill_fills_only_missing_manufacturers(db):
    db.add_all([
        ProcuredMed(po_number="PO-1", item_no=1, manufacturer="Unilab"),
        ProcuredMed(po_number="PO-1", item_no=2, manufacturer="Pfizer"),
        Iar(iar_number="IAR-1", date_of_inspection=datetime.date(2026, 1, 2), po_number="PO-1",
            item_number=1, inspected_quantity=1),
        Iar(iar_number="IAR-1", date_of_inspection=datetime.date(2026, 1, 2), po_number="PO-1",
            item_number=2, inspected_quantity=1, manufacturer="Kept"),
        Iar(iar_number="IAR-1", date_of_inspection=datetime.date(2026, 1, 2), po_number="PO-1",
            item_number=3, inspected_quantity=1),
    ])
    db.commit()

    assert backfill_iar_manufacturer(db) == 1

    stored = {iar.item_number: iar.manufacturer for iar in db.query(Iar).all()}
    assert stored == {1: "Unilab", 2: "Kept", 3: None}
    assert backfill_iar_manufacturer(db) == 0
