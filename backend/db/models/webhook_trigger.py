"""WebhookTrigger model for the workflow automation runtime.

A webhook trigger is the externally reachable entry point that starts a
workflow execution when a (optionally signed) HTTP call arrives at
``/workflows/webhooks/<url>/trigger``.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column

from db.base import BaseModel


class WebhookTrigger(BaseModel):
    """WebhookTrigger model: maps a generated URL suffix to a workflow.

    Attributes:
        id: UUID primary key
        workspace_id: Owning workspace
        workflow_id: Workflow to execute when triggered
        name: Human-readable trigger name
        url: Generated unguessable URL suffix (unique)
        secret: Generated HMAC-SHA256 signing secret
        active: Whether this trigger accepts calls
        last_triggered: When this trigger last fired
        trigger_count: How many times this trigger has fired
        created_by: User who created the trigger
    """

    __tablename__ = "webhook_triggers"

    workspace_id: Mapped[str] = mapped_column(nullable=False, index=True)
    # No foreign key: triggers and workflows are deleted independently
    workflow_id: Mapped[str] = mapped_column(nullable=False, index=True)
    created_by: Mapped[Optional[str]] = mapped_column(nullable=True)

    name: Mapped[str] = mapped_column(nullable=False)
    url: Mapped[str] = mapped_column(nullable=False, unique=True, index=True)
    secret: Mapped[str] = mapped_column(nullable=False)
    active: Mapped[bool] = mapped_column(default=True, index=True)
    last_triggered: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    trigger_count: Mapped[int] = mapped_column(default=0)
