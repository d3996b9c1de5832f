"""Execution controller: runs a stored workflow and records the outcome.

Lifecycle of an execution row:

    running --(all top-level steps succeed)--> completed
    running --(any step raises)------------> failed
    running --(cancel request)-------------> cancelled

All three end states are terminal. The terminal write of a finishing run is
conditional on the row still being ``running``, so a cancel that lands first
always wins and a finished row is never rewritten.

Execution rows are written through their own short sessions and committed
immediately: the ``running`` row is visible to pollers while steps run, and
a ``failed`` row survives even when the caller's transaction rolls back.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from core.constants import ExecutionStatus
from core.exceptions import (
    ConflictError,
    ExecutionCancelledError,
    ExecutionNotFoundError,
    WorkflowNotFoundError,
)
from db.models.execution import Execution
from db.models.workflow import Workflow
from workflow.engine import CancellationToken, ExecutionContext, StepExecutor
from workflow.step_tree import StepTree

logger = structlog.get_logger(__name__)


@dataclass
class ExecutionResult:
    """Outcome of a successful execution."""
    execution_id: str
    output: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "execution_id": self.execution_id,
            "output": self.output,
        }


class ExecutionController:
    """Drives the step executor over a workflow and persists the Execution.

    Args:
        session_factory: Async session factory for workflow/execution rows
        step_executor: Executor used for every step
        preserve_logs_on_failure: Store the accumulated step log on failed
            executions. Off by default, which stores an empty log list.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        step_executor: StepExecutor,
        preserve_logs_on_failure: bool = False,
    ):
        self._session_factory = session_factory
        self._step_executor = step_executor
        self._preserve_logs_on_failure = preserve_logs_on_failure
        self._running: dict[str, CancellationToken] = {}

    async def execute(
        self,
        workflow_id: str,
        input: Any = None,
        triggered_by: Optional[str] = None,
    ) -> ExecutionResult:
        """Execute a workflow from its top-level steps.

        Args:
            workflow_id: Workflow to run
            input: Opaque value exposed to steps as ``{{input...}}``
            triggered_by: Source tag stored on the execution

        Returns:
            ExecutionResult with the final variables

        Raises:
            WorkflowNotFoundError: workflow missing or inactive (no row created)
            ExecutionCancelledError: the execution was cancelled while running
            Exception: the first step error, after the row is marked failed
        """
        workflow = await self._load_workflow(workflow_id)
        if workflow is None or not workflow.active:
            raise WorkflowNotFoundError()

        tree = StepTree.from_models(workflow.steps)
        execution_id = await self._start_execution(workflow_id, input, triggered_by)
        token = CancellationToken()
        self._running[execution_id] = token
        context = ExecutionContext(
            input=input,
            execution_id=execution_id,
            cancel_token=token,
        )
        started = time.monotonic()
        log = logger.bind(execution_id=execution_id, workflow_id=workflow_id)
        log.info("Execution started", steps=len(tree), triggered_by=triggered_by)

        try:
            await self._step_executor.execute_steps(tree.roots, context, tree)
            token.raise_if_cancelled()
        except ExecutionCancelledError:
            log.info("Execution cancelled", completed_steps=len(context.logs))
            raise
        except Exception as e:
            error = str(e) or "Unknown error"
            await self._finish(
                execution_id,
                ExecutionStatus.FAILED,
                started,
                error=error,
                logs=context.logs_as_dicts() if self._preserve_logs_on_failure else [],
            )
            log.error("Execution failed", error=error)
            raise
        finally:
            self._running.pop(execution_id, None)

        finished = await self._finish(
            execution_id,
            ExecutionStatus.COMPLETED,
            started,
            output=context.variables,
            logs=context.logs_as_dicts(),
        )
        if not finished:
            log.info("Execution cancelled before completion was recorded")
            raise ExecutionCancelledError()

        log.info("Execution completed", duration_ms=int((time.monotonic() - started) * 1000))
        return ExecutionResult(execution_id=execution_id, output=context.variables)

    async def cancel(self, execution_id: str) -> Execution:
        """Move a running execution to ``cancelled``.

        A live in-process run also gets its cancellation token set and stops
        at the next step boundary or delay.

        Raises:
            ExecutionNotFoundError: unknown execution id
            ConflictError: the execution already reached a terminal state
        """
        async with self._session_factory() as session:
            execution = await session.get(Execution, execution_id)
            if execution is None:
                raise ExecutionNotFoundError()
            if execution.status != ExecutionStatus.RUNNING.value:
                raise ConflictError(f"Execution already {execution.status}")

            execution.status = ExecutionStatus.CANCELLED.value
            execution.completed_at = datetime.now(timezone.utc)
            await session.commit()

        token = self._running.get(execution_id)
        if token is not None:
            token.cancel()
        logger.info("Execution cancel requested", execution_id=execution_id, live=token is not None)
        return execution

    def get_running_executions(self) -> list[str]:
        """IDs of executions currently running in this process."""
        return list(self._running)

    # ─── Persistence ───────────────────────────────────────

    async def _load_workflow(self, workflow_id: str) -> Optional[Workflow]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Workflow)
                .where(Workflow.id == workflow_id)
                .options(selectinload(Workflow.steps))
            )
            return result.scalar_one_or_none()

    async def _start_execution(
        self, workflow_id: str, input: Any, triggered_by: Optional[str]
    ) -> str:
        async with self._session_factory() as session:
            execution = Execution(
                workflow_id=workflow_id,
                status=ExecutionStatus.RUNNING.value,
                input=input,
                triggered_by=triggered_by,
                logs=[],
                started_at=datetime.now(timezone.utc),
            )
            session.add(execution)
            await session.commit()
            return execution.id

    async def _finish(
        self,
        execution_id: str,
        status: ExecutionStatus,
        started: float,
        output: Any = None,
        error: Optional[str] = None,
        logs: Optional[list] = None,
    ) -> bool:
        """Write the terminal state if the row is still running.

        Returns:
            False when another transition (a cancel) got there first
        """
        values: dict[str, Any] = {
            "status": status.value,
            "completed_at": datetime.now(timezone.utc),
            "duration_ms": int((time.monotonic() - started) * 1000),
            "logs": logs or [],
        }
        if output is not None:
            values["output"] = output
        if error is not None:
            values["error"] = error

        async with self._session_factory() as session:
            result = await session.execute(
                update(Execution)
                .where(
                    Execution.id == execution_id,
                    Execution.status == ExecutionStatus.RUNNING.value,
                )
                .values(**values)
            )
            await session.commit()
        return result.rowcount == 1


# ─── Singleton ─────────────────────────────────────────────────

_controller: Optional[ExecutionController] = None


def get_execution_controller() -> ExecutionController:
    """Get or create the process-wide ExecutionController."""
    global _controller
    if _controller is None:
        from app.config import get_settings
        from db.database import get_session_factory
        from integrations.http_egress import HttpEgress
        from services.domain_store import SqlDomainStore

        settings = get_settings()
        session_factory = get_session_factory()
        _controller = ExecutionController(
            session_factory=session_factory,
            step_executor=StepExecutor(
                domain_store=SqlDomainStore(session_factory),
                egress=HttpEgress(timeout=settings.WEBHOOK_STEP_TIMEOUT_SECONDS),
                max_depth=settings.MAX_STEP_DEPTH,
            ),
            preserve_logs_on_failure=settings.PRESERVE_LOGS_ON_FAILURE,
        )
    return _controller


def reset_execution_controller() -> None:
    """Drop the cached controller (used when the session factory changes)."""
    global _controller
    _controller = None
