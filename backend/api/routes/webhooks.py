"""Webhook trigger routes: CRUD and the inbound receiver."""

from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from api.schemas.execution import ExecuteResponse
from api.schemas.webhook import WebhookTriggerCreate, WebhookTriggerResponse
from app.dependencies import get_db, get_gateway
from core.exceptions import NotFoundError
from services.webhook_trigger_service import WebhookTriggerService
from triggers.webhook import WebhookTriggerGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post(
    "/webhooks",
    response_model=WebhookTriggerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_webhook(
    request: WebhookTriggerCreate,
    db: AsyncSession = Depends(get_db),
) -> WebhookTriggerResponse:
    """
    Create a webhook trigger. The response carries the URL and signing secret.
    """
    svc = WebhookTriggerService(db)
    trigger = await svc.create_trigger(
        workspace_id=request.workspace_id,
        workflow_id=request.workflow_id,
        name=request.name,
        created_by=request.created_by,
    )
    return WebhookTriggerResponse.model_validate(trigger)


@router.get("/webhooks/workspace/{workspace_id}", response_model=List[WebhookTriggerResponse])
async def list_webhooks(
    workspace_id: str,
    db: AsyncSession = Depends(get_db),
) -> List[WebhookTriggerResponse]:
    svc = WebhookTriggerService(db)
    triggers = await svc.list_for_workspace(workspace_id)
    return [WebhookTriggerResponse.model_validate(t) for t in triggers]


@router.delete("/webhooks/{trigger_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_webhook(
    trigger_id: str,
    db: AsyncSession = Depends(get_db),
) -> None:
    svc = WebhookTriggerService(db)
    if not await svc.delete(trigger_id):
        raise NotFoundError("Webhook not found")


@router.post("/webhooks/{url}/trigger", response_model=ExecuteResponse)
async def receive_webhook(
    url: str,
    payload: Any = Body(default=None),
    signature: Optional[str] = Query(default=None, description="Hex HMAC-SHA256 of the JSON body"),
    gateway: WebhookTriggerGateway = Depends(get_gateway),
) -> ExecuteResponse:
    """
    Inbound webhook receiver. Runs the mapped workflow with the JSON body as input.
    """
    result = await gateway.handle_inbound(url, payload, signature=signature)
    return ExecuteResponse(**result.to_dict())
