"""Workflow endpoints: CRUD, per-workspace listing, execute, execution history."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from api.schemas.execution import ExecuteRequest, ExecuteResponse, ExecutionResponse
from api.schemas.workflow import (
    WorkflowCreate,
    WorkflowResponse,
    WorkflowStepResponse,
    WorkflowUpdate,
)
from app.dependencies import get_controller, get_db
from core.constants import DEFAULT_EXECUTION_LIST_LIMIT, TriggerType
from core.exceptions import NotFoundError
from services.workflow_service import ExecutionService, WorkflowService
from workflow.controller import ExecutionController

logger = logging.getLogger(__name__)

router = APIRouter(tags=["workflows"])


def _workflow_to_response(wf, execution_count: Optional[int] = None) -> WorkflowResponse:
    """Convert a Workflow ORM object to response schema."""
    return WorkflowResponse(
        id=wf.id,
        workspace_id=wf.workspace_id,
        name=wf.name,
        description=wf.description,
        icon=wf.icon,
        color=wf.color,
        trigger=wf.trigger or {},
        active=wf.active,
        version=wf.version,
        created_by=wf.created_by,
        created_at=wf.created_at,
        updated_at=wf.updated_at,
        steps=[WorkflowStepResponse.model_validate(s) for s in wf.steps],
        execution_count=execution_count,
    )


@router.post("/", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
async def create_workflow(
    request: WorkflowCreate,
    db: AsyncSession = Depends(get_db),
) -> WorkflowResponse:
    """
    Create a workflow with its initial step set.
    """
    svc = WorkflowService(db)
    wf = await svc.create_workflow(
        workspace_id=request.workspace_id,
        name=request.name,
        steps=[s.model_dump() for s in request.steps],
        description=request.description,
        icon=request.icon,
        color=request.color,
        trigger=request.trigger,
        created_by=request.created_by,
    )
    return _workflow_to_response(wf)


@router.get("/workspace/{workspace_id}", response_model=List[WorkflowResponse])
async def list_workspace_workflows(
    workspace_id: str,
    db: AsyncSession = Depends(get_db),
) -> List[WorkflowResponse]:
    """
    List a workspace's workflows with their steps and execution counts.
    """
    svc = WorkflowService(db)
    rows = await svc.list_workflows(workspace_id)
    return [_workflow_to_response(wf, count) for wf, count in rows]


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(
    workflow_id: str,
    db: AsyncSession = Depends(get_db),
) -> WorkflowResponse:
    """
    Get a workflow with its steps ordered by position.
    """
    svc = WorkflowService(db)
    wf = await svc.get_workflow(workflow_id)
    if not wf:
        raise NotFoundError("Workflow not found")
    return _workflow_to_response(wf)


@router.put("/{workflow_id}", response_model=WorkflowResponse)
async def update_workflow(
    workflow_id: str,
    request: WorkflowUpdate,
    db: AsyncSession = Depends(get_db),
) -> WorkflowResponse:
    """
    Update workflow fields. A ``steps`` list replaces every existing step.
    """
    svc = WorkflowService(db)
    data = request.model_dump(exclude_unset=True, exclude={"steps"})
    steps = [s.model_dump() for s in request.steps] if request.steps is not None else None
    wf = await svc.update_workflow(workflow_id, data, steps=steps)
    return _workflow_to_response(wf)


@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workflow(
    workflow_id: str,
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete a workflow together with its steps and executions.
    """
    svc = WorkflowService(db)
    if not await svc.delete_workflow(workflow_id):
        raise NotFoundError("Workflow not found")


@router.post("/{workflow_id}/execute", response_model=ExecuteResponse)
async def execute_workflow(
    workflow_id: str,
    request: Optional[ExecuteRequest] = None,
    controller: ExecutionController = Depends(get_controller),
) -> ExecuteResponse:
    """
    Run a workflow to completion and return its final variables.

    A failing step fails the request; the Execution row is kept as ``failed``.
    """
    request = request or ExecuteRequest()
    result = await controller.execute(
        workflow_id,
        input=request.input,
        triggered_by=request.triggered_by or TriggerType.MANUAL.value,
    )
    return ExecuteResponse(**result.to_dict())


@router.get("/{workflow_id}/executions", response_model=List[ExecutionResponse])
async def list_workflow_executions(
    workflow_id: str,
    limit: int = Query(DEFAULT_EXECUTION_LIST_LIMIT, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> List[ExecutionResponse]:
    """
    A workflow's executions, newest first.
    """
    svc = ExecutionService(db)
    executions = await svc.list_for_workflow(workflow_id, limit=limit)
    return [ExecutionResponse.model_validate(ex) for ex in executions]
