import pytest


@pytest.fixture
def created(client, farm, owner_headers):
    resp = client.post(
        f"/api/farms/{farm.id}/purchase-requests",
        json={
            "produto": "Sal mineral",
            "quantidade": "30 sacos de 25kg",
            "responsavel": "Ana Lima",
            "data": "2025-06-02T09:00:00",
            "urgente": True,
            "observacao": "Entregar na sede",
            "farmId": farm.id,
        },
        headers=owner_headers,
    )
    assert resp.status_code == 201
    return resp.json()


def test_create_returns_nova(created, owner):
    assert created["status"] == "NOVA"
    assert created["createdBy"] == owner.id
    assert created["urgente"] is True
    assert created["andamento"] is None
    assert created["finalizadoPor"] is None


def test_patch_workflow(client, created, owner_headers):
    url = f"/api/purchase-requests/{created['id']}"

    resp = client.patch(url, json={"status": "EM_ANDAMENTO", "andamento": "Aguardando fornecedor"}, headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "EM_ANDAMENTO"
    assert resp.json()["andamento"] == "Aguardando fornecedor"

    resp = client.patch(url, json={"status": "FINALIZADA", "finalizadoPor": "Carlos Mendes"}, headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "FINALIZADA"
    assert resp.json()["finalizadoPor"] == "Carlos Mendes"

    resp = client.patch(url, json={"status": "FINALIZADA", "finalizadoPor": "Outra pessoa"}, headers=owner_headers)
    assert resp.status_code == 409

    resp = client.post(f"{url}/finalize", json={"finalizadoPor": "Outra pessoa"}, headers=owner_headers)
    assert resp.status_code == 409

    resp = client.post(f"{url}/in-progress", json={"andamento": "Reabrir"}, headers=owner_headers)
    assert resp.status_code == 409

    assert client.get(url, headers=owner_headers).json()["finalizadoPor"] == "Carlos Mendes"


def test_dedicated_transition_endpoints(client, created, owner_headers):
    url = f"/api/purchase-requests/{created['id']}"
    resp = client.post(f"{url}/in-progress", json={"andamento": "Cotação com 3 fornecedores"}, headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "EM_ANDAMENTO"

    resp = client.post(f"{url}/finalize", json={"finalizadoPor": "Carlos Mendes"}, headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "FINALIZADA"


def test_patch_back_to_nova_is_rejected(client, created, owner_headers):
    url = f"/api/purchase-requests/{created['id']}"
    client.patch(url, json={"status": "EM_ANDAMENTO", "andamento": "Em cotação"}, headers=owner_headers)
    resp = client.patch(url, json={"status": "NOVA"}, headers=owner_headers)
    assert resp.status_code == 409


def test_patch_narrative_fields_need_matching_status(client, created, owner_headers):
    url = f"/api/purchase-requests/{created['id']}"
    resp = client.patch(url, json={"status": "NOVA", "andamento": "texto"}, headers=owner_headers)
    assert resp.status_code == 400
    resp = client.patch(url, json={"status": "EM_ANDAMENTO"}, headers=owner_headers)
    assert resp.status_code == 400

    body = client.get(url, headers=owner_headers).json()
    assert body["status"] == "NOVA"
    assert body["andamento"] is None


def test_plain_edit(client, created, owner_headers):
    resp = client.patch(
        f"/api/purchase-requests/{created['id']}",
        json={"quantidade": "40 sacos", "urgente": False},
        headers=owner_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["quantidade"] == "40 sacos"
    assert body["urgente"] is False
    assert body["status"] == "NOVA"


def test_unknown_status_value_is_422(client, created, owner_headers):
    resp = client.patch(f"/api/purchase-requests/{created['id']}", json={"status": "CANCELADA"}, headers=owner_headers)
    assert resp.status_code == 422


def test_list_with_filters(client, farm, created, owner_headers):
    client.post(
        f"/api/farms/{farm.id}/purchase-requests",
        json={"produto": "Óleo diesel", "quantidade": "500 L", "responsavel": "Pedro Alves", "data": "2025-06-05T00:00:00"},
        headers=owner_headers,
    )
    url = f"/api/farms/{farm.id}/purchase-requests"

    assert len(client.get(url, headers=owner_headers).json()) == 2
    assert len(client.get(url, params={"status": "all"}, headers=owner_headers).json()) == 2
    urgent = client.get(url, params={"urgente": "true"}, headers=owner_headers).json()
    assert [r["produto"] for r in urgent] == ["Sal mineral"]
    found = client.get(url, params={"search": "pedro"}, headers=owner_headers).json()
    assert [r["produto"] for r in found] == ["Óleo diesel"]
    assert client.get(url, params={"status": "FINALIZADA"}, headers=owner_headers).json() == []


def test_delete(client, created, owner_headers):
    url = f"/api/purchase-requests/{created['id']}"
    assert client.delete(url, headers=owner_headers).status_code == 204
    assert client.get(url, headers=owner_headers).status_code == 404


def test_outsider_cannot_see_or_change(client, farm, created, outsider_headers):
    url = f"/api/purchase-requests/{created['id']}"
    assert client.get(url, headers=outsider_headers).status_code == 404
    assert client.patch(url, json={"status": "FINALIZADA", "finalizadoPor": "X"}, headers=outsider_headers).status_code == 404
    assert client.delete(url, headers=outsider_headers).status_code == 404
    assert client.get(f"/api/farms/{farm.id}/purchase-requests", headers=outsider_headers).status_code == 404
