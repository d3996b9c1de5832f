"""Tests for inbound webhook handling."""

import pytest
from sqlalchemy import select

from core.exceptions import InvalidSignatureError, WebhookNotFoundError
from core.webhook_signing import compute_payload_signature
from db.models.execution import Execution
from db.models.webhook_trigger import WebhookTrigger
from services.webhook_trigger_service import WebhookTriggerService
from triggers.webhook import WebhookTriggerGateway

ECHO_STEPS = [
    {
        "name": "Echo",
        "type": "action",
        "config": {"actionType": "set_variable", "name": "orderId", "value": "{{input.order.id}}"},
    },
]


@pytest.fixture
def gateway(session_factory, controller):
    return WebhookTriggerGateway(session_factory, controller)


@pytest.fixture
def make_trigger(session_factory):
    async def _make(workflow_id, active=True):
        async with session_factory() as session:
            trigger = await WebhookTriggerService(session).create_trigger(
                workspace_id="ws-1",
                workflow_id=workflow_id,
                name="Orders",
            )
            trigger.active = active
            await session.commit()
            return trigger

    return _make


async def _reload(session_factory, trigger_id):
    async with session_factory() as session:
        return await session.get(WebhookTrigger, trigger_id)


async def _execution_count(session_factory):
    async with session_factory() as session:
        return len((await session.execute(select(Execution))).scalars().all())


@pytest.mark.integration
class TestHandleInbound:

    async def test_signed_call_runs_workflow(self, gateway, make_workflow, make_trigger, session_factory):
        trigger = await make_trigger(await make_workflow(ECHO_STEPS))
        payload = {"order": {"id": "o-42"}}

        result = await gateway.handle_inbound(
            trigger.url, payload, signature=compute_payload_signature(payload, trigger.secret)
        )

        assert result.output == {"orderId": "o-42"}
        stored = await _reload(session_factory, trigger.id)
        assert stored.trigger_count == 1
        assert stored.last_triggered is not None
        async with session_factory() as session:
            execution = await session.get(Execution, result.execution_id)
        assert execution.triggered_by == "webhook"
        assert execution.input == payload

    async def test_unsigned_call_is_accepted(self, gateway, make_workflow, make_trigger, session_factory):
        trigger = await make_trigger(await make_workflow(ECHO_STEPS))

        await gateway.handle_inbound(trigger.url, {"order": {"id": 1}})
        await gateway.handle_inbound(trigger.url, {"order": {"id": 2}})

        assert (await _reload(session_factory, trigger.id)).trigger_count == 2

    async def test_empty_signature_is_treated_as_unsigned(self, gateway, make_workflow, make_trigger, session_factory):
        trigger = await make_trigger(await make_workflow(ECHO_STEPS))

        result = await gateway.handle_inbound(trigger.url, {"order": {"id": "o-7"}}, signature="")

        assert result.output == {"orderId": "o-7"}
        assert (await _reload(session_factory, trigger.id)).trigger_count == 1
        assert await _execution_count(session_factory) == 1

    async def test_bad_signature_is_rejected(self, gateway, make_workflow, make_trigger, session_factory):
        trigger = await make_trigger(await make_workflow(ECHO_STEPS))

        with pytest.raises(InvalidSignatureError):
            await gateway.handle_inbound(trigger.url, {"order": {"id": 1}}, signature="00" * 32)

        assert (await _reload(session_factory, trigger.id)).trigger_count == 0
        assert await _execution_count(session_factory) == 0

    async def test_unknown_url(self, gateway):
        with pytest.raises(WebhookNotFoundError):
            await gateway.handle_inbound("webhook_missing", {})

    async def test_inactive_trigger(self, gateway, make_workflow, make_trigger, session_factory):
        trigger = await make_trigger(await make_workflow(ECHO_STEPS), active=False)

        with pytest.raises(WebhookNotFoundError):
            await gateway.handle_inbound(trigger.url, {})

        assert await _execution_count(session_factory) == 0


@pytest.mark.integration
class TestListForWorkspace:

    async def test_returns_every_trigger(self, make_workflow, make_trigger, session_factory):
        workflow_id = await make_workflow(ECHO_STEPS)
        for _ in range(60):
            await make_trigger(workflow_id)

        async with session_factory() as session:
            service = WebhookTriggerService(session)
            assert len(await service.list_for_workspace("ws-1")) == 60
            assert len(await service.list_for_workspace("ws-1", limit=5)) == 5
            assert await service.list_for_workspace("ws-2") == []
