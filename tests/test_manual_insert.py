import crud.iar as crud_iar
import crud.procured_meds as crud_procured_meds


def test_manual_procured_med_insert_and_conflict(client):
    payload = {"poNumber": " PO-9 ", "itemNo": 1, "poDate": "2026-03-01", "supplier": "Acme"}

    first = client.post("/procured-meds/manual", json=payload)
    assert first.status_code == 200
    assert first.json() == {"message": "Inserted", "poNumber": "PO-9", "itemNo": 1}

    second = client.post("/procured-meds/manual", json=payload)
    assert second.status_code == 409
    assert second.json()["detail"] == "PO number and item number already exist."


def test_manual_procured_med_validation(client):
    assert client.post("/procured-meds/manual", json={"poNumber": "PO-9", "itemNo": 0}).status_code == 422
    assert client.post("/procured-meds/manual", json={"poNumber": "  ", "itemNo": 1}).status_code == 422

    bad_date = client.post("/procured-meds/manual", json={"poNumber": "PO-9", "itemNo": 1, "poDate": "next week"})
    assert bad_date.status_code == 400
    assert bad_date.json()["detail"] == "Invalid PO date."


def test_manual_iar_insert_copies_manufacturer(client):
    client.post("/procured-meds/manual", json={"poNumber": "PO-9", "itemNo": 2, "manufacturer": "Pascual"})
    payload = {
        "iarNumber": "IAR-9",
        "dateOfInspection": "2026-03-05",
        "poNumber": "PO-9",
        "itemNumber": 2,
        "inspectedQuantity": 4,
    }

    response = client.post("/iar/manual", json=payload)
    assert response.status_code == 200
    assert response.json() == {"message": "Inserted", "iarNumber": "IAR-9", "poNumber": "PO-9", "itemNumber": 2}

    items = client.get("/dashboard/PO-9/iars/IAR-9").json()["items"]
    assert items[0]["manufacturer"] == "Pascual"

    assert client.post("/iar/manual", json=payload).status_code == 409


def test_manual_iar_rejects_bad_dates(client):
    payload = {
        "iarNumber": "IAR-9",
        "dateOfInspection": "yesterday",
        "poNumber": "PO-9",
        "itemNumber": 1,
        "inspectedQuantity": 0,
    }
    response = client.post("/iar/manual", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid inspection date."

    payload["dateOfInspection"] = "2026-03-05"
    payload["expirationDate"] = "03/2027"
    response = client.post("/iar/manual", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid expiration date."


def test_manual_procured_med_concurrent_insert_is_conflict(client, monkeypatch):
    payload = {"poNumber": "PO-9", "itemNo": 1}
    assert client.post("/procured-meds/manual", json=payload).status_code == 200

    # Another writer stored the key after the existence check ran
    monkeypatch.setattr(crud_procured_meds, "get_procured_med", lambda db, po_number, item_no: None)
    response = client.post("/procured-meds/manual", json=payload)
    assert response.status_code == 409
    assert response.json()["detail"] == "PO number and item number already exist."
    assert client.get("/procured-meds/po-numbers").json() == {"poNumbers": ["PO-9"]}


def test_manual_iar_concurrent_insert_is_conflict(client, monkeypatch):
    payload = {
        "iarNumber": "IAR-9",
        "dateOfInspection": "2026-03-05",
        "poNumber": "PO-9",
        "itemNumber": 1,
        "inspectedQuantity": 2,
    }
    assert client.post("/iar/manual", json=payload).status_code == 200

    monkeypatch.setattr(crud_iar, "get_iar", lambda db, iar_number, po_number, item_number: None)
    response = client.post("/iar/manual", json=payload)
    assert response.status_code == 409
    assert response.json()["detail"] == "IAR number, PO number, and item number already exist."
