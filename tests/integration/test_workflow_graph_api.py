"""
Integration tests for the workflow graph API wired with its default backends.

Uses the real dependency providers (in-memory repository, in-memory lock,
logging event publisher) behind an ASGI transport.
"""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app

BASE = "/api/v1/workflows"


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


async def create_workflow(client, name="Integration Flow") -> str:
    response = await client.post(BASE, json={"name": name})
    assert response.status_code == 201
    return response.json()["workflow"]["id"]


@pytest.mark.asyncio
async def test_invoice_flow_end_to_end(client):
    workflow_id = await create_workflow(client, "Invoice Flow")

    await client.post(f"{BASE}/{workflow_id}/nodes", json={"id": "n1", "type": "httpRequest"})
    await client.post(f"{BASE}/{workflow_id}/nodes", json={"id": "n2", "type": "emailSend"})
    await client.post(
        f"{BASE}/{workflow_id}/connections",
        json={"sourceNodeId": "n1", "targetNodeId": "n2"},
    )
    activated = await client.post(f"{BASE}/{workflow_id}/activate")

    body = activated.json()["workflow"]
    assert body["active"] is True
    assert body["version"] == 5
    assert len(body["nodes"]) == 2
    assert len(body["connections"]) == 1


@pytest.mark.asyncio
async def test_concurrent_node_additions_are_serialized(client):
    """Every concurrent edit lands; none is lost to a read-modify-write race."""
    workflow_id = await create_workflow(client)

    responses = await asyncio.gather(
        *(
            client.post(f"{BASE}/{workflow_id}/nodes", json={"id": f"n{i}", "type": "set"})
            for i in range(20)
        )
    )

    assert all(r.status_code == 201 for r in responses)
    workflow = (await client.get(f"{BASE}/{workflow_id}")).json()
    assert len(workflow["nodes"]) == 20
    assert workflow["version"] == 21


@pytest.mark.asyncio
async def test_concurrent_duplicate_node_ids_only_one_wins(client):
    workflow_id = await create_workflow(client)

    responses = await asyncio.gather(
        *(
            client.post(f"{BASE}/{workflow_id}/nodes", json={"id": "same", "type": "set"})
            for _ in range(5)
        )
    )

    assert sorted(r.status_code for r in responses) == [201, 409, 409, 409, 409]


@pytest.mark.asyncio
async def test_request_validation_errors(client):
    workflow_id = await create_workflow(client)

    missing_type = await client.post(f"{BASE}/{workflow_id}/nodes", json={"id": "n1"})
    bad_kind = await client.post(
        f"{BASE}/{workflow_id}/connections",
        json={"sourceNodeId": "a", "targetNodeId": "b", "kind": "telepathy"},
    )

    assert missing_type.status_code == 422
    assert bad_kind.status_code == 422
