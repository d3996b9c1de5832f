"""API integration tests: full request/response cycle against the test database."""

import asyncio

import pytest

from core.webhook_signing import compute_payload_signature

API = "/api/v1"

GREETING_WORKFLOW = {
    "workspace_id": "ws-1",
    "name": "Greeter",
    "icon": "wave",
    "steps": [
        {
            "name": "Greet",
            "type": "action",
            "config": {"actionType": "set_variable", "name": "greeting", "value": "hi {{input.name}}"},
        },
    ],
}


async def _create_workflow(client, body=GREETING_WORKFLOW):
    resp = await client.post(f"{API}/workflows/", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.integration
class TestHealth:

    async def test_liveness(self, client):
        resp = await client.get(f"{API}/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert "X-Request-ID" in resp.headers

    async def test_readiness(self, client):
        resp = await client.get(f"{API}/health/ready")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy", "database": "ok"}


@pytest.mark.integration
class TestWorkflowEndpoints:

    async def test_create_and_get(self, client):
        created = await _create_workflow(client)
        assert created["version"] == 1
        assert created["trigger"] == {"type": "manual"}
        assert created["icon"] == "wave"
        assert [s["name"] for s in created["steps"]] == ["Greet"]

        resp = await client.get(f"{API}/workflows/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Greeter"

    async def test_get_missing(self, client):
        resp = await client.get(f"{API}/workflows/nope")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Workflow not found"

    async def test_create_with_nested_steps(self, client):
        body = {
            "workspace_id": "ws-1",
            "name": "Nested",
            "steps": [
                {"id": "loop", "name": "Each", "type": "loop",
                 "config": {"items": "{{input.rows}}", "variableName": "row"}},
                {"name": "Inner", "type": "delay", "config": {"duration": 0}, "parentId": "loop"},
            ],
        }
        created = await _create_workflow(client, body)
        loop, inner = created["steps"]
        assert inner["parent_id"] == loop["id"]
        assert loop["id"] != "loop"

    async def test_invalid_step_reference(self, client):
        body = {
            "workspace_id": "ws-1",
            "name": "Broken",
            "steps": [{"name": "A", "type": "action", "next_step_id": "ghost"}],
        }
        resp = await client.post(f"{API}/workflows/", json=body)
        assert resp.status_code == 422
        assert "ghost" in resp.json()["detail"]

    async def test_unknown_step_kind_rejected(self, client):
        body = {"workspace_id": "ws-1", "name": "Bad", "steps": [{"name": "A", "type": "teleport"}]}
        resp = await client.post(f"{API}/workflows/", json=body)
        assert resp.status_code == 422

    async def test_update_and_list(self, client):
        created = await _create_workflow(client)
        resp = await client.put(
            f"{API}/workflows/{created['id']}",
            json={"name": "Greeter v2", "steps": []},
        )
        assert resp.status_code == 200
        assert resp.json()["version"] == 2
        assert resp.json()["steps"] == []

        resp = await client.get(f"{API}/workflows/workspace/ws-1")
        assert resp.status_code == 200
        [listed] = resp.json()
        assert listed["name"] == "Greeter v2"
        assert listed["execution_count"] == 0

    async def test_delete(self, client):
        created = await _create_workflow(client)
        resp = await client.delete(f"{API}/workflows/{created['id']}")
        assert resp.status_code == 204
        resp = await client.delete(f"{API}/workflows/{created['id']}")
        assert resp.status_code == 404


@pytest.mark.integration
class TestExecutionEndpoints:

    async def test_execute_and_inspect(self, client):
        created = await _create_workflow(client)

        resp = await client.post(
            f"{API}/workflows/{created['id']}/execute",
            json={"input": {"name": "Ana"}},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["output"] == {"greeting": "hi Ana"}

        resp = await client.get(f"{API}/workflows/executions/{body['execution_id']}")
        assert resp.status_code == 200
        execution = resp.json()
        assert execution["status"] == "completed"
        assert execution["triggered_by"] == "manual"
        assert execution["workflow"]["name"] == "Greeter"
        assert len(execution["logs"]) == 2

        resp = await client.get(f"{API}/workflows/{created['id']}/executions", params={"limit": 10})
        assert [e["id"] for e in resp.json()] == [body["execution_id"]]

    async def test_execute_without_body(self, client):
        created = await _create_workflow(client)
        resp = await client.post(f"{API}/workflows/{created['id']}/execute")
        assert resp.status_code == 200
        assert resp.json()["output"] == {"greeting": "hi {{input.name}}"}

    async def test_execute_inactive_workflow(self, client):
        created = await _create_workflow(client)
        await client.put(f"{API}/workflows/{created['id']}", json={"active": False})

        resp = await client.post(f"{API}/workflows/{created['id']}/execute", json={})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Workflow not found or inactive"

        resp = await client.get(f"{API}/workflows/{created['id']}/executions")
        assert resp.json() == []

    async def test_failed_execution_is_listed(self, client):
        body = {
            "workspace_id": "ws-1",
            "name": "Fails",
            "steps": [{"name": "Bad", "type": "action", "config": {"actionType": "explode"}}],
        }
        created = await _create_workflow(client, body)

        resp = await client.post(f"{API}/workflows/{created['id']}/execute", json={})
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Unknown action type: explode"

        [execution] = (await client.get(f"{API}/workflows/{created['id']}/executions")).json()
        assert execution["status"] == "failed"
        assert execution["error"] == "Unknown action type: explode"

    async def test_cancel_running_then_conflict(self, client, controller):
        body = {
            "workspace_id": "ws-1",
            "name": "Slow",
            "steps": [{"name": "Wait", "type": "delay", "config": {"duration": 60000}}],
        }
        created = await _create_workflow(client, body)
        run = asyncio.create_task(
            client.post(f"{API}/workflows/{created['id']}/execute", json={})
        )
        for _ in range(200):
            if controller.get_running_executions():
                break
            await asyncio.sleep(0.01)
        [execution_id] = controller.get_running_executions()

        resp = await client.post(f"{API}/workflows/executions/{execution_id}/cancel")
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

        resp = await asyncio.wait_for(run, timeout=5)
        assert resp.status_code == 409

        resp = await client.post(f"{API}/workflows/executions/{execution_id}/cancel")
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Execution already cancelled"

    async def test_get_missing_execution(self, client):
        resp = await client.get(f"{API}/workflows/executions/missing")
        assert resp.status_code == 404


@pytest.mark.integration
class TestWebhookEndpoints:

    async def test_trigger_lifecycle(self, client):
        created = await _create_workflow(client)
        resp = await client.post(
            f"{API}/workflows/webhooks",
            json={"workspace_id": "ws-1", "workflow_id": created["id"], "name": "Inbound"},
        )
        assert resp.status_code == 201
        trigger = resp.json()
        assert trigger["url"].startswith("webhook_")
        assert trigger["trigger_count"] == 0

        payload = {"name": "Bo"}
        resp = await client.post(
            f"{API}/workflows/webhooks/{trigger['url']}/trigger",
            params={"signature": compute_payload_signature(payload, trigger["secret"])},
            json=payload,
        )
        assert resp.status_code == 200
        assert resp.json()["output"] == {"greeting": "hi Bo"}

        resp = await client.post(
            f"{API}/workflows/webhooks/{trigger['url']}/trigger",
            params={"signature": "bad"},
            json=payload,
        )
        assert resp.status_code == 401

        [listed] = (await client.get(f"{API}/workflows/webhooks/workspace/ws-1")).json()
        assert listed["trigger_count"] == 1
        assert listed["last_triggered"] is not None

        resp = await client.delete(f"{API}/workflows/webhooks/{trigger['id']}")
        assert resp.status_code == 204
        resp = await client.post(f"{API}/workflows/webhooks/{trigger['url']}/trigger", json=payload)
        assert resp.status_code == 404

    async def test_empty_signature_query_runs_unsigned(self, client):
        created = await _create_workflow(client)
        trigger = (await client.post(
            f"{API}/workflows/webhooks",
            json={"workspace_id": "ws-1", "workflow_id": created["id"], "name": "Inbound"},
        )).json()

        resp = await client.post(
            f"{API}/workflows/webhooks/{trigger['url']}/trigger?signature=",
            json={"name": "Cy"},
        )
        assert resp.status_code == 200
        assert resp.json()["output"] == {"greeting": "hi Cy"}

    async def test_trigger_for_missing_workflow(self, client):
        resp = await client.post(
            f"{API}/workflows/webhooks",
            json={"workspace_id": "ws-1", "workflow_id": "nope", "name": "Orphan"},
        )
        assert resp.status_code == 404
