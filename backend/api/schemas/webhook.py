"""Webhook trigger schemas."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class WebhookTriggerCreate(BaseModel):
    """Request to create a webhook trigger."""

    workspace_id: str = Field(min_length=1, description="Owning workspace")
    workflow_id: str = Field(min_length=1, description="Workflow to run when invoked")
    name: str = Field(min_length=1, description="Trigger name")
    created_by: Optional[str] = Field(default=None, description="Creating user ID")


class WebhookTriggerResponse(BaseModel):
    """Webhook trigger response. ``secret`` signs inbound payloads."""

    id: str
    workspace_id: str
    workflow_id: str
    name: str
    url: str = Field(description="Path suffix used in /workflows/webhooks/<url>/trigger")
    secret: str = Field(description="HMAC-SHA256 signing secret")
    active: bool
    trigger_count: int
    last_triggered: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
