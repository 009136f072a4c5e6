import pytest_asyncio


@pytest_asyncio.fixture
async def session_id(client, owner):
    res = await client.post(
        "/api/stocktakes",
        json={"name": "October count", "organizationId": owner.org_id, "sectionId": owner.section_id},
        headers=owner.headers,
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["status"] == "open"
    assert body["closedAt"] is None
    return body["id"]


async def test_count_and_close_applies_quantities(client, owner, margaux, session_id):
    url = f"/api/stocktakes/{session_id}/records/{margaux['id']}"

    res = await client.put(url, json={"actualQuantity": 2}, headers=owner.headers)
    assert res.status_code == 200
    record = res.json()
    assert record["expectedQuantity"] == 3
    assert record["actualQuantity"] == 2
    assert record["diffQuantity"] == -1

    # a correction keeps the original snapshot
    res = await client.put(url, json={"actualQuantity": 4}, headers=owner.headers)
    assert res.json()["expectedQuantity"] == 3
    assert res.json()["actualQuantity"] == 4

    res = await client.get(f"/api/stocktakes/{session_id}", headers=owner.headers)
    assert res.status_code == 200
    assert [r["itemId"] for r in res.json()["records"]] == [margaux["id"]]

    res = await client.post(f"/api/stocktakes/{session_id}/close", headers=owner.headers)
    assert res.status_code == 200
    assert res.json()["status"] == "closed"
    assert res.json()["closedAt"]

    item = (await client.get(f"/api/inventory/{margaux['id']}", headers=owner.headers)).json()
    assert item["quantity"] == 4


async def test_closed_session_rejects_changes(client, owner, margaux, session_id):
    await client.post(f"/api/stocktakes/{session_id}/close", headers=owner.headers)

    res = await client.put(
        f"/api/stocktakes/{session_id}/records/{margaux['id']}", json={"actualQuantity": 1}, headers=owner.headers
    )
    assert res.status_code == 409
    res = await client.post(f"/api/stocktakes/{session_id}/close", headers=owner.headers)
    assert res.status_code == 409


async def test_outsider_is_forbidden(client, owner, outsider, margaux, session_id):
    assert (await client.get(f"/api/stocktakes/{session_id}", headers=outsider.headers)).status_code == 403
    res = await client.put(
        f"/api/stocktakes/{session_id}/records/{margaux['id']}", json={"actualQuantity": 0}, headers=outsider.headers
    )
    assert res.status_code == 403
    assert (await client.post(f"/api/stocktakes/{session_id}/close", headers=outsider.headers)).status_code == 403
    assert (await client.delete(f"/api/stocktakes/{session_id}", headers=outsider.headers)).status_code == 403
    res = await client.get("/api/stocktakes", params={"sectionId": owner.section_id}, headers=outsider.headers)
    assert res.status_code == 403


async def test_item_from_another_section_is_rejected(client, owner, session_id):
    res = await client.post(
        f"/api/organizations/{owner.org_id}/sections", json={"name": "Kitchen"}, headers=owner.headers
    )
    kitchen_id = res.json()["id"]
    res = await client.post(
        "/api/inventory",
        json={"name": "Butter", "organizationId": owner.org_id, "sectionId": kitchen_id, "quantity": 2, "unit": "kg"},
        headers=owner.headers,
    )
    butter_id = res.json()["id"]

    res = await client.put(
        f"/api/stocktakes/{session_id}/records/{butter_id}", json={"actualQuantity": 1}, headers=owner.headers
    )
    assert res.status_code == 400

    res = await client.put(
        f"/api/stocktakes/{session_id}/records/missing", json={"actualQuantity": 1}, headers=owner.headers
    )
    assert res.status_code == 404


async def test_negative_count_rejected(client, owner, margaux, session_id):
    res = await client.put(
        f"/api/stocktakes/{session_id}/records/{margaux['id']}", json={"actualQuantity": -2}, headers=owner.headers
    )
    assert res.status_code == 400


async def test_create_with_mismatched_section(client, owner, outsider):
    res = await client.post(
        "/api/stocktakes",
        json={"name": "Count", "organizationId": outsider.org_id, "sectionId": owner.section_id},
        headers=outsider.headers,
    )
    assert res.status_code == 400


async def test_list_and_delete(client, owner, session_id):
    res = await client.get("/api/stocktakes", params={"sectionId": owner.section_id}, headers=owner.headers)
    assert res.status_code == 200
    assert [s["id"] for s in res.json()["sessions"]] == [session_id]

    res = await client.delete(f"/api/stocktakes/{session_id}", headers=owner.headers)
    assert res.json() == {"success": True, "id": session_id}
    assert (await client.get(f"/api/stocktakes/{session_id}", headers=owner.headers)).status_code == 404
