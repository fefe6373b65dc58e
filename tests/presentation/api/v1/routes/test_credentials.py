"""Test credential API endpoints"""

import pytest
from fastapi import status


@pytest.mark.asyncio
async def test_issue_credential(client, staff_member):
    """Test successful credential issuance"""
    response = await client.post("/credentials/", json={"subject_external_id": "EMP-001"})

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["subject_id"] == staff_member.id
    assert data["table_id"] == staff_member.table_id
    assert data["envelope"]
    assert len(data["envelope_hash"]) == 64
    assert data["verification_url"].startswith("http://localhost:5173/verify/")
    assert isinstance(data["issued_at"], int)


@pytest.mark.asyncio
async def test_issue_credential_unknown_subject(client, staff_table):
    response = await client.post("/credentials/", json={"subject_external_id": "NOBODY"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "SUBJECT_NOT_FOUND"


@pytest.mark.asyncio
async def test_issue_credential_validates_body(client):
    response = await client.post("/credentials/", json={"subject_external_id": ""})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_revoke_credential(client, staff_member):
    issued = (
        await client.post("/credentials/", json={"subject_external_id": "EMP-001"})
    ).json()

    first = await client.post(f"/credentials/{issued['token_id']}/revoke")
    second = await client.post(f"/credentials/{issued['token_id']}/revoke")

    assert first.status_code == status.HTTP_204_NO_CONTENT
    assert second.status_code == status.HTTP_204_NO_CONTENT

    history = (await client.get("/credentials/subject/EMP-001")).json()
    assert history[0]["id"] == issued["token_id"]
    assert history[0]["is_active"] is False


@pytest.mark.asyncio
async def test_revoke_unknown_credential(client):
    response = await client.post("/credentials/missing/revoke")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "RESOURCE_NOT_FOUND"


@pytest.mark.asyncio
async def test_subject_history_newest_first(client, staff_member):
    first = (await client.post("/credentials/", json={"subject_external_id": "EMP-001"})).json()
    second = (await client.post("/credentials/", json={"subject_external_id": "EMP-001"})).json()

    response = await client.get("/credentials/subject/EMP-001")

    assert response.status_code == status.HTTP_200_OK
    assert [t["id"] for t in response.json()] == [second["token_id"], first["token_id"]]


@pytest.mark.asyncio
async def test_subject_history_unknown_subject(client):
    response = await client.get("/credentials/subject/NOBODY")

    assert response.status_code == status.HTTP_404_NOT_FOUND
