"""Test table schema API endpoints"""

import pytest
from fastapi import status


@pytest.mark.asyncio
async def test_get_inferred_schema(client, staff_member):
    response = await client.get(f"/tables/{staff_member.table_id}/schema")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["table_name"] == "Staff"
    assert data["inferred"] is True
    assert [f["name"] for f in data["fields"]] == [
        "Names",
        "State Code",
        "Position",
        "Email Address",
    ]


@pytest.mark.asyncio
async def test_get_schema_unknown_table(client):
    response = await client.get("/tables/missing/schema")

    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_register_field_mapping(client, staff_member):
    response = await client.put(
        f"/tables/{staff_member.table_id}/field-mapping",
        json={"mappings": {"fullName": "Names", "identifier": "State Code"}},
    )

    assert response.status_code == status.HTTP_200_OK
    fields = {f["name"]: f for f in response.json()["fields"]}
    assert fields["Names"]["mapped_to"] == "fullName"
    assert fields["State Code"]["mapped_to"] == "identifier"

    stored = (await client.get(f"/tables/{staff_member.table_id}/schema")).json()
    assert stored["inferred"] is False
    assert {f["name"]: f["mapped_to"] for f in stored["fields"]}["Names"] == "fullName"


@pytest.mark.asyncio
async def test_mapping_changes_scanner_display(client, staff_member):
    """An explicit mapping overrides the heuristic on the next scan"""
    await client.put(
        f"/tables/{staff_member.table_id}/field-mapping",
        json={"mappings": {"fullName": "Position"}},
    )
    issued = (await client.post("/credentials/", json={"subject_external_id": "EMP-001"})).json()

    response = await client.post("/scanner/verify", json={"envelope": issued["envelope"]})

    assert response.json()["subject"]["display"]["full_name"] == "Engineer"


@pytest.mark.asyncio
async def test_register_field_mapping_unknown_field(client, student_table):
    response = await client.put(
        f"/tables/{student_table.id}/field-mapping",
        json={"mappings": {"fullName": "Nope"}},
    )

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_register_field_mapping_unknown_table(client):
    response = await client.put(
        "/tables/missing/field-mapping", json={"mappings": {"fullName": "Names"}}
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
