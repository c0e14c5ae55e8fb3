from models.procured_meds import ProcuredMed


def test_distinct_projections_are_trimmed_sorted_and_unique(client, db):
    db.add_all([
        ProcuredMed(po_number="PO-2", item_no=1, supplier=" Zenith ", mode_of_procurement="Public Bidding"),
        ProcuredMed(po_number="PO-1", item_no=1, supplier="Acme", mode_of_procurement="Shopping"),
        ProcuredMed(po_number="PO-1", item_no=2, supplier="Zenith", mode_of_procurement="   "),
        ProcuredMed(po_number="PO-3", item_no=1, supplier=None, mode_of_procurement=None),
    ])
    db.commit()

    assert client.get("/procured-meds/po-numbers").json() == {"poNumbers": ["PO-1", "PO-2", "PO-3"]}
    assert client.get("/suppliers").json() == {"suppliers": ["Acme", "Zenith"]}
    assert client.get("/modes-of-procurement").json() == {"modes": ["Public Bidding", "Shopping"]}


def test_distinct_projections_empty(client):
    assert client.get("/suppliers").json() == {"suppliers": []}
