from decimal import Decimal


def test_requires_authentication(client, item):
    resp = client.post(f"/api/inventory/{item.id}/entry", json={"quantity": "1"})
    assert resp.status_code == 401


def test_ledger_scenario_over_http(client, item, owner_headers):
    item_id = item.id

    resp = client.post(
        f"/api/inventory/{item_id}/entry",
        json={"quantity": "50", "documentNumber": "NF-1", "unitPrice": "2.50"},
        headers=owner_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["transaction"]["type"] == "IN"
    assert Decimal(body["transaction"]["previousBalance"]) == Decimal("100")
    assert Decimal(body["transaction"]["newBalance"]) == Decimal("150")
    assert Decimal(body["transaction"]["totalPrice"]) == Decimal("125.00")
    assert body["transaction"]["documentNumber"] == "NF-1"
    assert Decimal(body["item"]["quantity"]) == Decimal("150")

    resp = client.post(
        f"/api/inventory/{item_id}/withdrawal",
        json={"quantity": "30", "destination": "Curral 2"},
        headers=owner_headers,
    )
    assert resp.status_code == 201
    txn = resp.json()["transaction"]
    assert txn["type"] == "OUT"
    assert Decimal(txn["previousBalance"]) == Decimal("150")
    assert Decimal(txn["newBalance"]) == Decimal("120")
    assert txn["destinationOrSource"] == "Curral 2"

    resp = client.post(
        f"/api/inventory/{item_id}/adjustment",
        json={"newQuantity": "200", "notes": "physical count correction"},
        headers=owner_headers,
    )
    assert resp.status_code == 201
    txn = resp.json()["transaction"]
    assert txn["type"] == "ADJUST"
    assert Decimal(txn["previousBalance"]) == Decimal("120")
    assert Decimal(txn["newBalance"]) == Decimal("200")

    resp = client.get(f"/api/inventory/{item_id}/transactions", headers=owner_headers)
    assert resp.status_code == 200
    rows = resp.json()
    assert len(rows) == 3
    assert [r["type"] for r in rows] == ["ADJUST", "OUT", "IN"]
    for newer, older in zip(rows, rows[1:]):
        assert newer["previousBalance"] == older["newBalance"]

    item_body = client.get(f"/api/inventory/{item_id}", headers=owner_headers).json()
    assert Decimal(item_body["quantity"]) == Decimal(rows[0]["newBalance"])

    check = client.get(f"/api/inventory/{item_id}/ledger-check", headers=owner_headers).json()
    assert check["consistent"] is True
    assert check["transactionCount"] == 3


def test_quantities_are_serialized_as_strings(client, item, owner_headers):
    resp = client.post(f"/api/inventory/{item.id}/entry", json={"quantity": "0.1"}, headers=owner_headers)
    assert resp.status_code == 201
    new_balance = resp.json()["transaction"]["newBalance"]
    assert isinstance(new_balance, str)
    assert Decimal(new_balance) == Decimal("100.1")


def test_insufficient_stock_returns_409(client, item, owner_headers):
    item_id = item.id
    resp = client.post(f"/api/inventory/{item_id}/withdrawal", json={"quantity": "101"}, headers=owner_headers)
    assert resp.status_code == 409
    assert "Insufficient stock" in resp.json()["detail"]

    assert client.get(f"/api/inventory/{item_id}/transactions", headers=owner_headers).json() == []
    item_body = client.get(f"/api/inventory/{item_id}", headers=owner_headers).json()
    assert Decimal(item_body["quantity"]) == Decimal("100")


def test_non_positive_quantity_returns_400(client, item, owner_headers):
    resp = client.post(f"/api/inventory/{item.id}/entry", json={"quantity": "-3"}, headers=owner_headers)
    assert resp.status_code == 400


def test_malformed_quantity_returns_422(client, item, owner_headers):
    resp = client.post(f"/api/inventory/{item.id}/entry", json={"quantity": "muito"}, headers=owner_headers)
    assert resp.status_code == 422


def test_other_farm_item_is_not_found(client, item, outsider_headers):
    resp = client.post(f"/api/inventory/{item.id}/entry", json={"quantity": "5"}, headers=outsider_headers)
    assert resp.status_code == 404
    resp = client.get(f"/api/inventory/{item.id}/transactions", headers=outsider_headers)
    assert resp.status_code == 404


def test_patch_item_ignores_quantity(client, item, owner_headers):
    resp = client.patch(
        f"/api/inventory/{item.id}",
        json={"quantity": "5000", "minimumLevel": "150"},
        headers=owner_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert Decimal(body["quantity"]) == Decimal("100")
    assert Decimal(body["minimumLevel"]) == Decimal("150")
    assert body["isCritical"] is True


def test_farm_inventory_endpoints(client, farm, item, owner_headers):
    farm_id = farm.id
    resp = client.post(
        f"/api/farms/{farm_id}/inventory",
        json={"name": "Vermífugo", "category": "medicine", "quantity": "2", "unit": "L", "minimumLevel": "5"},
        headers=owner_headers,
    )
    assert resp.status_code == 201
    created = resp.json()
    assert created["farmId"] == farm_id
    assert created["version"] == 0

    names = [i["name"] for i in client.get(f"/api/farms/{farm_id}/inventory", headers=owner_headers).json()]
    assert names == ["Ração bovina", "Vermífugo"]

    critical = client.get(f"/api/farms/{farm_id}/inventory/critical", headers=owner_headers).json()
    assert [i["name"] for i in critical] == ["Vermífugo"]

    client.post(f"/api/inventory/{created['id']}/entry", json={"quantity": "10"}, headers=owner_headers)
    client.post(f"/api/inventory/{item.id}/withdrawal", json={"quantity": "10"}, headers=owner_headers)

    txns = client.get(f"/api/farms/{farm_id}/inventory/transactions", headers=owner_headers).json()
    assert len(txns) == 2
    outs = client.get(
        f"/api/farms/{farm_id}/inventory/transactions", params={"type": "OUT"}, headers=owner_headers
    ).json()
    assert len(outs) == 1
    assert outs[0]["inventoryId"] == item.id


def test_farm_inventory_outside_scope(client, farm, outsider_headers):
    assert client.get(f"/api/farms/{farm.id}/inventory", headers=outsider_headers).status_code == 404
    assert client.get(f"/api/farms/{farm.id}/inventory/transactions", headers=outsider_headers).status_code == 404
