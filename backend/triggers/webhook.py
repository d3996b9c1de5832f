"""Webhook trigger gateway.

Receives calls to ``/workflows/webhooks/<url>/trigger`` and turns them into
workflow executions:

1. Look up the trigger by its URL suffix (missing or inactive → rejected).
2. If the caller supplied a ``signature``, verify it against the trigger
   secret (mismatch → rejected). Calls without a signature are accepted.
3. Bump ``trigger_count``/``last_triggered`` and commit.
4. Execute the workflow with the payload as input, ``triggered_by="webhook"``.

Rejected calls never create an Execution row.
"""

from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import InvalidSignatureError, WebhookNotFoundError
from core.webhook_signing import verify_payload_signature
from services.webhook_trigger_service import WebhookTriggerService
from workflow.controller import ExecutionController, ExecutionResult

logger = structlog.get_logger(__name__)

WEBHOOK_TRIGGERED_BY = "webhook"


class WebhookTriggerGateway:
    """Maps inbound webhook calls to workflow executions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        controller: ExecutionController,
    ):
        self._session_factory = session_factory
        self._controller = controller

    async def handle_inbound(
        self,
        url: str,
        payload: Any,
        signature: Optional[str] = None,
    ) -> ExecutionResult:
        """Validate an inbound call and run the mapped workflow.

        Args:
            url: Trigger URL suffix from the request path
            payload: Parsed JSON body
            signature: Optional hex HMAC-SHA256 of the canonical JSON body

        Raises:
            WebhookNotFoundError: no such trigger, or it is inactive
            InvalidSignatureError: signature supplied and not matching
        """
        async with self._session_factory() as session:
            svc = WebhookTriggerService(session)
            trigger = await svc.get_by_url(url)
            if trigger is None or not trigger.active:
                logger.warning("Webhook rejected: unknown or inactive", url=url)
                raise WebhookNotFoundError()

            if signature and not verify_payload_signature(payload, trigger.secret, signature):
                logger.warning("Webhook rejected: invalid signature", trigger_id=trigger.id)
                raise InvalidSignatureError()

            await svc.record_invocation(trigger.id)
            await session.commit()
            workflow_id = trigger.workflow_id
            trigger_id = trigger.id

        logger.info("Webhook accepted", trigger_id=trigger_id, workflow_id=workflow_id)
        return await self._controller.execute(
            workflow_id,
            input=payload,
            triggered_by=WEBHOOK_TRIGGERED_BY,
        )


# ─── Singleton ─────────────────────────────────────────────────

_gateway: Optional[WebhookTriggerGateway] = None


def get_webhook_gateway() -> WebhookTriggerGateway:
    """Get or create the process-wide WebhookTriggerGateway."""
    global _gateway
    if _gateway is None:
        from db.database import get_session_factory
        from workflow.controller import get_execution_controller

        _gateway = WebhookTriggerGateway(get_session_factory(), get_execution_controller())
    return _gateway


def reset_webhook_gateway() -> None:
    global _gateway
    _gateway = None
