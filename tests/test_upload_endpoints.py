import io

from openpyxl import load_workbook

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

MEDS_HEADER = ["PO Number", "Item No", "PO Date", "Supplier", "Generic Name", "Quantity", "Acquisition Cost"]
IAR_HEADER = ["IAR No", "Date of Inspection", "PO Number", "Item Number", "Quantity", "Particulars"]


def _upload(client, path, contents, filename="upload.xlsx"):
    return client.post(path, files={"file": (filename, contents, XLSX_TYPE)})


def test_parse_procured_meds(client, make_xlsx):
    contents = make_xlsx(MEDS_HEADER, [
        ["PO-1", 1, "01/05/2026", "Acme", 'Paracetamol 500mg "Biogesic"', 100, 2.5],
        [None, 2, "01/05/2026", "Acme", "Ibuprofen", 10, 3],
        ["PO-1", 3, "2026-1-5", "Acme", "Cetirizine", 20, "1,000.005"],
    ], sheet_name="PO Items")

    response = _upload(client, "/upload-procured-meds/parse", contents)

    assert response.status_code == 200
    body = response.json()
    assert body["sheetName"] == "PO Items"
    assert body["totalRows"] == 3
    assert body["validRowsCount"] == 2
    assert body["errors"][0]["index"] == 3
    assert "PO Number is required" in body["errors"][0]["message"]
    first = body["allValidRows"][0]
    assert first["poNumber"] == "PO-1"
    assert first["itemNo"] == 1
    assert first["poDate"] == "2026-01-05"
    assert first["brandName"] == "Biogesic"
    assert first["acquisitionCost"] == 2.5
    assert body["allValidRows"][1]["acquisitionCost"] == 1000.01
    assert body["preview"] == body["allValidRows"]


def test_parse_without_file(client):
    response = client.post("/upload-procured-meds/parse")
    assert response.status_code == 400
    assert response.json()["detail"] == "No file uploaded"


def test_parse_unreadable_file(client):
    response = _upload(client, "/upload-iar/parse", b"not a spreadsheet", "broken.xlsx")
    assert response.status_code == 400


def test_commit_procured_meds_reports_ledger(client):
    rows = [
        {"poNumber": "PO-1", "itemNo": 1, "poDate": "2026-01-05", "quantity": 100},
        {"poNumber": "PO-1", "itemNo": 1, "poDate": "2026-01-05", "quantity": 100},
        {"poNumber": "PO-1", "itemNo": 2, "poDate": "2026-01-05", "quantity": 50},
    ]
    client.post("/upload-procured-meds/commit", json={"rows": [rows[2]]})

    response = client.post("/upload-procured-meds/commit", json={"rows": rows})

    assert response.status_code == 200
    body = response.json()
    assert body["insertedCount"] == 1
    assert body["totalReceived"] == 3
    assert body["skippedDuplicates"] == 2
    assert body["logs"] == [
        {"poNumber": "PO-1", "itemNo": 1, "result": "inserted"},
        {"poNumber": "PO-1", "itemNo": 1, "result": "skipped", "reason": "duplicate_in_upload"},
        {"poNumber": "PO-1", "itemNo": 2, "result": "skipped", "reason": "already_exists"},
    ]


def test_commit_with_invalid_date_is_rejected(client):
    rows = [{"poNumber": "PO-1", "itemNo": 1, "poDate": "13/40/2024"}]
    response = client.post("/upload-procured-meds/commit", json={"rows": rows})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid PO date at row 2: 13/40/2024"


def test_iar_parse_then_commit_round_trip(client, make_xlsx):
    client.post("/procured-meds/manual", json={
        "poNumber": "PO-7", "itemNo": 1, "manufacturer": "Unilab", "quantity": 30,
    })
    contents = make_xlsx(IAR_HEADER, [
        ["IAR-100", "02/01/2026", "PO-7", 1, 30, 'Batch: AB-12345; Exp: 03/2026 "BrandX"'],
    ])

    parsed = _upload(client, "/upload-iar/parse", contents).json()
    assert parsed["validRowsCount"] == 1
    row = parsed["allValidRows"][0]
    assert row["brand"] == "BrandX"
    assert row["batchLotNumber"] == "AB-12345"
    assert row["expirationDate"] == "2026-03-01"

    committed = client.post("/upload-iar/commit", json={"rows": parsed["allValidRows"]}).json()
    assert committed["insertedCount"] == 1
    assert committed["logs"] == [
        {"iarNumber": "IAR-100", "poNumber": "PO-7", "itemNumber": 1, "result": "inserted"},
    ]

    items = client.get("/dashboard/PO-7/iars/IAR-100").json()
    assert items["items"][0]["manufacturer"] == "Unilab"
    assert items["totalInspectedQuantity"] == 30

    details = client.get("/dashboard/PO-7").json()
    assert details["status"] == "Complete"


def test_dashboard_404(client):
    assert client.get("/dashboard/PO-404").status_code == 404
    assert client.get("/dashboard/PO-404/iars/IAR-1").status_code == 404
    assert client.get("/dashboard/PO-404/iars").json() == []


def test_dpri_b_export(client):
    client.post("/procured-meds/manual", json={"poNumber": "PO-1", "itemNo": 1, "poDate": "2026-01-05"})

    response = client.get("/reports/dpri-b/export")

    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_TYPE
    sheet = load_workbook(io.BytesIO(response.content)).active
    assert sheet.title == "DPRI-B Report"
    assert sheet["A1"].value == "PO Number"
    assert sheet["A2"].value == "PO-1"
    assert sheet["K2"].value == "Not Delivered"


def test_dpri_b_json(client):
    client.post("/procured-meds/manual", json={"poNumber": "PO-1", "itemNo": 1, "supplier": "Acme"})
    client.post("/procured-meds/manual", json={"poNumber": "PO-2", "itemNo": 1, "supplier": "Zenith"})

    body = client.get("/reports/dpri-b", params={"supplier": "zen"}).json()

    assert [row["poNumber"] for row in body] == ["PO-2"]
    assert body[0]["deliveryStatus"] == "Not Delivered"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
