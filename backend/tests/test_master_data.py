"""
Master Data Tests.
"""

import pytest


@pytest.mark.asyncio
async def test_create_and_list_cities(client, operator_headers):
    created = await client.post("/api/cities", json={"name": "  Multan "}, headers=operator_headers)
    assert created.status_code == 201
    assert created.json()["name"] == "Multan"

    duplicate = await client.post("/api/cities", json={"name": "Multan"}, headers=operator_headers)
    assert duplicate.status_code == 409

    listed = await client.get("/api/cities", headers=operator_headers)
    assert [city["name"] for city in listed.json()] == ["Multan"]


@pytest.mark.asyncio
async def test_vehicle_numbers_are_normalized(client, operator_headers):
    created = await client.post("/api/vehicles", json={"vehicle_number": " les-777 "}, headers=operator_headers)
    assert created.status_code == 201
    assert created.json()["vehicle_number"] == "LES-777"

    duplicate = await client.post("/api/vehicles", json={"vehicle_number": "LES-777"}, headers=operator_headers)
    assert duplicate.status_code == 409

    blank = await client.post("/api/vehicles", json={"vehicle_number": "   "}, headers=operator_headers)
    assert blank.status_code == 422


@pytest.mark.asyncio
async def test_parties_items_agencies_and_labour(client, operator_headers):
    party = await client.post(
        "/api/parties", json={"name": "Hamid & Sons", "contact_info": "0300-5555555", "opening_balance": 250},
        headers=operator_headers,
    )
    assert party.status_code == 201
    assert party.json()["opening_balance"] == 250

    item = await client.post("/api/items", json={"item_description": "Rice Bags"}, headers=operator_headers)
    assert item.status_code == 201
    assert (await client.post("/api/items", json={"item_description": "Rice Bags"}, headers=operator_headers)).status_code == 409

    agency = await client.post("/api/agencies", json={"name": "Daewoo Cargo"}, headers=operator_headers)
    assert agency.status_code == 201

    labour = await client.post("/api/labour-persons", json={"name": "Kareem"}, headers=operator_headers)
    assert labour.status_code == 201
    assert labour.json()["contact_info"] is None

    for path in ("/api/parties", "/api/items", "/api/agencies", "/api/labour-persons"):
        listed = await client.get(path, headers=operator_headers)
        assert listed.status_code == 200
        assert len(listed.json()) == 1


@pytest.mark.asyncio
async def test_master_data_requires_authentication(client):
    response = await client.post("/api/cities", json={"name": "Quetta"})
    assert response.status_code in (401, 403)
