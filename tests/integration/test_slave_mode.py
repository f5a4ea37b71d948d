"""API tests for a process running in SLAVE execution mode."""

import pytest
from httpx import AsyncClient

from pipeline_library.models import HEAD_REV
from pipeline_library.runtime import ExecutionMode, RuntimeInfo
from pipeline_library.services.seed_rules import build_seed_rule_definitions

BASE = "/v1/pipeline-library"
SLAVE_MESSAGE = "This operation is not supported in SLAVE mode"


@pytest.fixture
def runtime_info() -> RuntimeInfo:
    return RuntimeInfo(execution_mode=ExecutionMode.SLAVE)


@pytest.mark.asyncio
async def test_create_rejected(client: AsyncClient, admin_headers):
    response = await client.put(f"{BASE}/foo", headers=admin_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == SLAVE_MESSAGE

    listing = await client.get(BASE, headers=admin_headers)
    assert listing.json() == []


@pytest.mark.asyncio
async def test_save_and_delete_rejected(client: AsyncClient, admin_headers, store):
    await store.create("foo", "", "admin")
    body = (await client.get(f"{BASE}/foo", headers=admin_headers)).json()

    saved = await client.post(f"{BASE}/foo", json=body, headers=admin_headers)
    deleted = await client.delete(f"{BASE}/foo", headers=admin_headers)

    assert (saved.status_code, deleted.status_code) == (403, 403)
    assert saved.json()["detail"] == SLAVE_MESSAGE
    assert deleted.json()["detail"] == SLAVE_MESSAGE
    assert (await store.get_info("foo")).last_rev == "1"


@pytest.mark.asyncio
async def test_role_check_precedes_mode_check(client: AsyncClient, guest_headers):
    response = await client.put(f"{BASE}/foo", headers=guest_headers)

    assert response.status_code == 403
    assert response.json()["detail"] != SLAVE_MESSAGE


@pytest.mark.asyncio
async def test_rules_still_editable(client: AsyncClient, manager_headers, store):
    await store.create("foo", "", "admin")
    await store.store_rules("foo", HEAD_REV, build_seed_rule_definitions())
    rules = (await client.get(f"{BASE}/foo/rules", headers=manager_headers)).json()
    rules["emailIds"] = ["ops@example.com"]

    response = await client.post(f"{BASE}/foo/rules", json=rules, headers=manager_headers)

    assert response.status_code == 200
    assert response.json()["emailIds"] == ["ops@example.com"]
