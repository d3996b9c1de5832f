"""Workflow service: workflow CRUD with full step-set replacement, execution queries."""

import logging
from typing import Any, Optional, Sequence
from uuid import uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.constants import CONTAINER_STEP_TYPES, DEFAULT_EXECUTION_LIST_LIMIT, TriggerType
from core.exceptions import NotFoundError, ValidationError
from db.models.execution import Execution
from db.models.workflow import Workflow
from db.models.workflow_step import WorkflowStep
from services.base import BaseService

logger = logging.getLogger(__name__)


def build_step_rows(workflow_id: str, steps: Sequence[dict[str, Any]]) -> list[WorkflowStep]:
    """Turn submitted step dicts into fresh WorkflowStep rows.

    Every replacement assigns new ids. A submitted step may carry its own
    ``id`` so that ``parent_id``/``next_step_id`` of other steps in the same
    set can point at it; those references are rewritten to the new ids.
    Positions follow list order.

    Raises:
        ValidationError: duplicate ids, dangling references, or a parent
            that is not a condition/loop step
    """
    new_ids: list[str] = []
    id_map: dict[str, str] = {}
    types: dict[str, str] = {}
    for step in steps:
        new_id = str(uuid4())
        new_ids.append(new_id)
        types[new_id] = step["type"]
        client_id = step.get("id")
        if client_id:
            if client_id in id_map:
                raise ValidationError(f"Duplicate step id: {client_id}")
            id_map[client_id] = new_id

    def _resolve(reference: Optional[str], field: str, step_name: str) -> Optional[str]:
        if reference is None:
            return None
        if reference not in id_map:
            raise ValidationError(f"Step '{step_name}' has unknown {field}: {reference}")
        return id_map[reference]

    rows = []
    for position, (new_id, step) in enumerate(zip(new_ids, steps)):
        parent_id = _resolve(step.get("parent_id"), "parent_id", step["name"])
        if parent_id is not None and types[parent_id] not in CONTAINER_STEP_TYPES:
            raise ValidationError(
                f"Step '{step['name']}' has a parent that is not a condition or loop step"
            )
        rows.append(WorkflowStep(
            id=new_id,
            workflow_id=workflow_id,
            name=step["name"],
            type=step["type"],
            config=step.get("config") or {},
            position=position,
            parent_id=parent_id,
            next_step_id=_resolve(step.get("next_step_id"), "next_step_id", step["name"]),
        ))
    return rows


class WorkflowService(BaseService[Workflow]):
    """Service for workflow management."""

    def __init__(self, db: AsyncSession):
        super().__init__(Workflow, db)

    async def create_workflow(
        self,
        workspace_id: str,
        name: str,
        steps: Sequence[dict[str, Any]] = (),
        description: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        trigger: Optional[dict] = None,
        created_by: Optional[str] = None,
    ) -> Workflow:
        """Create a workflow together with its initial step set."""
        workflow_id = str(uuid4())
        rows = build_step_rows(workflow_id, steps)
        await self.create({
            "id": workflow_id,
            "workspace_id": workspace_id,
            "name": name,
            "description": description,
            "icon": icon,
            "color": color,
            "trigger": trigger or {"type": TriggerType.MANUAL.value},
            "created_by": created_by,
            "active": True,
            "version": 1,
        })
        self.db.add_all(rows)
        await self.db.flush()
        logger.info(f"Workflow {workflow_id} created with {len(rows)} step(s)")
        return await self.get_workflow(workflow_id)

    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        """Get a workflow with its steps ordered by position."""
        result = await self.db.execute(
            select(Workflow)
            .where(Workflow.id == workflow_id)
            .options(selectinload(Workflow.steps))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_workflows(self, workspace_id: str) -> list[tuple[Workflow, int]]:
        """List a workspace's workflows, most recently updated first.

        Returns:
            (workflow, execution_count) pairs
        """
        counts = (
            select(Execution.workflow_id, func.count(Execution.id).label("executions"))
            .group_by(Execution.workflow_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Workflow, func.coalesce(counts.c.executions, 0))
            .outerjoin(counts, counts.c.workflow_id == Workflow.id)
            .where(Workflow.workspace_id == workspace_id)
            .options(selectinload(Workflow.steps))
            .order_by(Workflow.updated_at.desc(), Workflow.created_at.desc())
        )
        return [(wf, count) for wf, count in result.all()]

    async def update_workflow(
        self,
        workflow_id: str,
        data: dict[str, Any],
        steps: Optional[Sequence[dict[str, Any]]] = None,
    ) -> Workflow:
        """Update workflow fields and bump the version.

        When ``steps`` is given the whole step set is replaced: every existing
        step is deleted and the new set is created from scratch.

        Raises:
            NotFoundError: unknown workflow
            ValidationError: invalid step references
        """
        wf = await self.get_by_id(workflow_id)
        if not wf:
            raise NotFoundError("Workflow not found")

        rows = build_step_rows(workflow_id, steps) if steps is not None else None

        await self.update(workflow_id, {**data, "version": wf.version + 1})

        if rows is not None:
            await self.db.execute(
                delete(WorkflowStep).where(WorkflowStep.workflow_id == workflow_id)
            )
            self.db.add_all(rows)
            await self.db.flush()
            logger.info(f"Workflow {workflow_id} steps replaced ({len(rows)} step(s))")

        return await self.get_workflow(workflow_id)

    async def delete_workflow(self, workflow_id: str) -> bool:
        """Delete a workflow with all of its steps and executions."""
        wf = await self.get_by_id(workflow_id)
        if not wf:
            return False

        await self.db.execute(delete(Execution).where(Execution.workflow_id == workflow_id))
        await self.db.execute(delete(WorkflowStep).where(WorkflowStep.workflow_id == workflow_id))
        await self.db.execute(delete(Workflow).where(Workflow.id == workflow_id))
        logger.info(f"Workflow {workflow_id} deleted")
        return True


class ExecutionService(BaseService[Execution]):
    """Service for execution history queries."""

    def __init__(self, db: AsyncSession):
        super().__init__(Execution, db)

    async def list_for_workflow(
        self,
        workflow_id: str,
        limit: int = DEFAULT_EXECUTION_LIST_LIMIT,
    ) -> Sequence[Execution]:
        """Executions of a workflow, newest first."""
        items, _ = await self.list(
            limit=limit,
            order_by="started_at",
            order_desc=True,
            filters={"workflow_id": workflow_id},
        )
        return items

    async def get_with_workflow(self, execution_id: str) -> Optional[Execution]:
        """Get an execution with its workflow loaded."""
        result = await self.db.execute(
            select(Execution)
            .where(Execution.id == execution_id)
            .options(selectinload(Execution.workflow))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
