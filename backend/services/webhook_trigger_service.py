"""Webhook trigger service: CRUD and invocation bookkeeping for webhook triggers."""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFoundError
from core.webhook_signing import generate_webhook_path, generate_webhook_secret
from db.models.webhook_trigger import WebhookTrigger
from db.models.workflow import Workflow
from services.base import BaseService

logger = logging.getLogger(__name__)


class WebhookTriggerService(BaseService[WebhookTrigger]):
    """Service for webhook trigger management."""

    def __init__(self, db: AsyncSession):
        super().__init__(WebhookTrigger, db)

    async def create_trigger(
        self,
        workspace_id: str,
        workflow_id: str,
        name: str,
        created_by: Optional[str] = None,
    ) -> WebhookTrigger:
        """Create a webhook trigger with a generated URL and signing secret.

        Raises:
            NotFoundError: the target workflow does not exist
        """
        workflow = await self.db.get(Workflow, workflow_id)
        if workflow is None:
            raise NotFoundError("Workflow not found")

        trigger = await self.create({
            "workspace_id": workspace_id,
            "workflow_id": workflow_id,
            "name": name,
            "url": generate_webhook_path(),
            "secret": generate_webhook_secret(),
            "created_by": created_by,
            "active": True,
            "trigger_count": 0,
        })
        logger.info(f"Webhook trigger {trigger.id} created for workflow {workflow_id}")
        return trigger

    async def list_for_workspace(
        self,
        workspace_id: str,
        limit: Optional[int] = None,
    ) -> Sequence[WebhookTrigger]:
        """A workspace's triggers, newest first. All of them unless ``limit`` is given."""
        items, _ = await self.list(workspace_id=workspace_id, limit=limit)
        return items

    async def get_by_url(self, url: str) -> Optional[WebhookTrigger]:
        result = await self.db.execute(
            select(WebhookTrigger).where(WebhookTrigger.url == url)
        )
        return result.scalar_one_or_none()

    async def record_invocation(self, trigger_id: str) -> None:
        """Atomically bump the trigger counter and last-triggered timestamp."""
        await self.db.execute(
            update(WebhookTrigger)
            .where(WebhookTrigger.id == trigger_id)
            .values(
                trigger_count=WebhookTrigger.trigger_count + 1,
                last_triggered=datetime.now(timezone.utc),
            )
        )
