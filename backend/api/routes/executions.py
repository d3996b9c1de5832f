"""Execution detail and cancellation endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from api.schemas.execution import ExecutionResponse
from app.dependencies import get_controller, get_db
from core.exceptions import ExecutionNotFoundError
from services.workflow_service import ExecutionService
from workflow.controller import ExecutionController

logger = logging.getLogger(__name__)

router = APIRouter(tags=["executions"])


@router.get("/executions/{execution_id}", response_model=ExecutionResponse)
async def get_execution(
    execution_id: str,
    db: AsyncSession = Depends(get_db),
) -> ExecutionResponse:
    """
    Get an execution with its logs and owning workflow.
    """
    svc = ExecutionService(db)
    execution = await svc.get_with_workflow(execution_id)
    if not execution:
        raise ExecutionNotFoundError()
    return ExecutionResponse.model_validate(execution)


@router.post("/executions/{execution_id}/cancel", response_model=ExecutionResponse)
async def cancel_execution(
    execution_id: str,
    controller: ExecutionController = Depends(get_controller),
) -> ExecutionResponse:
    """
    Cancel a running execution. Terminal executions answer 409.
    """
    execution = await controller.cancel(execution_id)
    logger.info(f"Execution {execution_id} cancelled via API")
    return ExecutionResponse.model_validate(execution)
