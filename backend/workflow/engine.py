"""Workflow step executor: interprets one step tree against a context.

A workflow is a tree of typed steps. Top-level steps run in position
order; ``condition`` and ``loop`` steps own children through ``parent_id``;
any step may name an explicit successor through ``next_step_id``.

Step kinds and their config (keys are camelCase, as authored in the UI):

    action        {"actionType": "create_task", "title": "...", "projectId": "..."}
                  {"actionType": "update_task", "taskId": "...", "status": "DONE"}
                  {"actionType": "delete_task", "taskId": "..."}
                  {"actionType": "set_variable", "name": "greeting", "value": "hi {{input.name}}"}
    condition     {"operator": "equals", "left": "{{variables.x}}", "right": "5"}
                  children carry {"branch": "true"} or {"branch": "false"}
    loop          {"items": "{{variables.rows}}", "variableName": "row"}
    delay         {"duration": 1500}                      # milliseconds
    webhook       {"url": "...", "method": "POST", "headers": {...}, "body": "..."}
    notification  {"userId": "...", "title": "...", "message": "..."}

Every step appends ``started`` then ``completed`` (or ``failed``) entries to
the context log. Failures are re-raised, never swallowed: the execution
controller decides what to persist.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

import structlog

from core.constants import ActionType, ConditionOperator, StepLogStatus, StepType
from core.exceptions import ExecutionCancelledError, WorkflowDefinitionError
from workflow.interpolation import interpolate, render_value, resolve_reference
from workflow.step_tree import StepNode, StepTree

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 200


# ─── Cancellation ─────────────────────────────────────────────

class CancellationToken:
    """Cooperative cancel signal for one in-flight execution.

    Checked before every step and while a delay step waits. I/O that is
    already in progress is not interrupted.
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise ExecutionCancelledError()

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless cancelled first."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise ExecutionCancelledError()


# ─── Execution Context ────────────────────────────────────────

@dataclass
class LogEntry:
    """One execution log line."""
    step: str
    type: str
    status: StepLogStatus
    timestamp: str
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "timestamp": self.timestamp,
            "step": self.step,
            "type": self.type,
            "status": self.status.value,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class ExecutionContext:
    """Mutable state threaded through one execution.

    Owned by exactly one running execution. Steps read ``input``, read and
    write ``variables`` and append to ``logs``; the final ``variables``
    become the execution output.
    """

    input: Any = None
    variables: dict[str, Any] = field(default_factory=dict)
    logs: list[LogEntry] = field(default_factory=list)
    execution_id: Optional[str] = None
    cancel_token: Optional[CancellationToken] = None

    def log(self, step: StepNode, status: StepLogStatus, error: Optional[str] = None) -> None:
        self.logs.append(LogEntry(
            step=step.name,
            type=step.type,
            status=status,
            timestamp=datetime.now(timezone.utc).isoformat(),
            error=error,
        ))

    def logs_as_dicts(self) -> list[dict[str, Any]]:
        return [entry.to_dict() for entry in self.logs]

    def as_namespace(self) -> dict[str, Any]:
        """Root mapping that interpolation paths are resolved against."""
        return {
            "input": self.input,
            "variables": self.variables,
            "logs": self.logs_as_dicts(),
        }

    def raise_if_cancelled(self) -> None:
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled()

    async def sleep(self, seconds: float) -> None:
        if self.cancel_token is not None:
            await self.cancel_token.sleep(seconds)
        else:
            await asyncio.sleep(seconds)


# ─── Condition evaluation ─────────────────────────────────────

def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def evaluate_condition(operator: str, left: Any, right: Any) -> bool:
    """Compare two interpolated operands.

    Ordering operators compare numerically when both sides are numbers or
    numeric strings and fall back to native ordering otherwise (which raises
    ``TypeError`` for incomparable types). ``contains`` checks substring
    containment of the rendered values.
    """
    if operator == ConditionOperator.EQUALS.value:
        return left == right
    if operator == ConditionOperator.NOT_EQUALS.value:
        return left != right
    if operator in (ConditionOperator.GREATER_THAN.value, ConditionOperator.LESS_THAN.value):
        left_num, right_num = _as_number(left), _as_number(right)
        if left_num is not None and right_num is not None:
            left, right = left_num, right_num
        if operator == ConditionOperator.GREATER_THAN.value:
            return left > right
        return left < right
    if operator == ConditionOperator.CONTAINS.value:
        return render_value(right) in render_value(left)
    if operator == ConditionOperator.NOT_CONTAINS.value:
        return render_value(right) not in render_value(left)
    raise WorkflowDefinitionError(f"Unknown operator: {operator}")


# ─── Step Executor ─────────────────────────────────────────────

StepHandler = Callable[[StepNode, ExecutionContext, StepTree, int], Awaitable[None]]


class StepExecutor:
    """Executes workflow steps, dispatching on step type.

    Args:
        domain_store: Task/notification persistence (BaseDomainStore)
        egress: Outbound HTTP client used by webhook steps (HttpEgress)
        max_depth: Nesting limit for condition and loop children
    """

    def __init__(self, domain_store, egress, max_depth: int = DEFAULT_MAX_DEPTH):
        self._domain_store = domain_store
        self._egress = egress
        self._max_depth = max_depth
        self._handlers: dict[str, StepHandler] = {
            StepType.ACTION.value: self._execute_action,
            StepType.CONDITION.value: self._execute_condition,
            StepType.LOOP.value: self._execute_loop,
            StepType.DELAY.value: self._execute_delay,
            StepType.WEBHOOK.value: self._execute_webhook,
            StepType.NOTIFICATION.value: self._execute_notification,
        }

    async def execute_steps(
        self,
        steps: list[StepNode],
        context: ExecutionContext,
        tree: StepTree,
        depth: int = 0,
    ) -> None:
        """Execute steps one after another, stopping at the first failure."""
        for step in steps:
            await self.execute_step(step, context, tree, depth)

    async def execute_step(
        self,
        step: StepNode,
        context: ExecutionContext,
        tree: StepTree,
        depth: int = 0,
    ) -> None:
        """Execute a single step, then its chain of explicit successors.

        Successors run at the same depth as ``step``; only children of
        condition and loop steps count towards the nesting limit. A chain
        that returns to a step it has already run is rejected.

        Args:
            step: Step to run
            context: Shared execution context (mutated in place)
            tree: Step tree of the workflow being executed
            depth: Current nesting depth

        Raises:
            WorkflowDefinitionError: nesting too deep, or a successor cycle
            Whatever a step raised, after a ``failed`` log entry
        """
        if depth > self._max_depth:
            raise WorkflowDefinitionError(
                f"Maximum step nesting depth of {self._max_depth} exceeded at step '{step.name}'"
            )

        seen: set[str] = set()
        current: Optional[StepNode] = step
        while current is not None:
            if current.id in seen:
                raise WorkflowDefinitionError(f"Step cycle detected at step '{current.name}'")
            seen.add(current.id)
            await self._run_step(current, context, tree, depth)
            current = tree.next_of(current)

    async def _run_step(
        self,
        step: StepNode,
        context: ExecutionContext,
        tree: StepTree,
        depth: int,
    ) -> None:
        context.raise_if_cancelled()

        context.log(step, StepLogStatus.STARTED)
        try:
            handler = self._handlers.get(step.type)
            if handler is None:
                raise WorkflowDefinitionError(f"Unknown step type: {step.type}")
            await handler(step, context, tree, depth)
        except ExecutionCancelledError:
            raise
        except Exception as e:
            error = str(e) or "Unknown error"
            context.log(step, StepLogStatus.FAILED, error=error)
            logger.warning(
                "Step failed",
                execution_id=context.execution_id,
                step_id=step.id,
                step_type=step.type,
                error=error,
            )
            raise
        context.log(step, StepLogStatus.COMPLETED)

    # ─── Step types ────────────────────────────────────────

    async def _execute_action(
        self, step: StepNode, context: ExecutionContext, tree: StepTree, depth: int
    ) -> None:
        config = step.config
        action_type = config.get("actionType")

        if action_type == ActionType.CREATE_TASK.value:
            task = await self._domain_store.create_task({
                "title": interpolate(config.get("title"), context),
                "description": interpolate(config.get("description"), context),
                "projectId": config.get("projectId"),
                "assigneeId": config.get("assigneeId"),
                "status": config.get("status"),
                "priority": config.get("priority"),
            })
            context.variables["createdTask"] = task

        elif action_type == ActionType.UPDATE_TASK.value:
            fields = {
                key: config.get(key)
                for key in ("status", "priority", "assigneeId")
                if config.get(key) is not None
            }
            for key in ("title", "description"):
                if config.get(key):
                    fields[key] = interpolate(config[key], context)
            task = await self._domain_store.update_task(config.get("taskId"), fields)
            context.variables["updatedTask"] = task

        elif action_type == ActionType.DELETE_TASK.value:
            await self._domain_store.delete_task(config.get("taskId"))

        elif action_type == ActionType.SET_VARIABLE.value:
            name = config.get("name")
            if not name:
                raise WorkflowDefinitionError("set_variable action requires a name")
            context.variables[name] = interpolate(config.get("value"), context)

        else:
            raise WorkflowDefinitionError(f"Unknown action type: {action_type}")

    async def _execute_condition(
        self, step: StepNode, context: ExecutionContext, tree: StepTree, depth: int
    ) -> None:
        config = step.config
        result = evaluate_condition(
            config.get("operator"),
            interpolate(config.get("left"), context),
            interpolate(config.get("right"), context),
        )
        context.variables[f"condition_{step.id}"] = result

        branch = "true" if result else "false"
        branch_steps = [
            child for child in tree.children_of(step.id)
            if child.config.get("branch") == branch
        ]
        logger.debug(
            "Condition evaluated",
            step_id=step.id,
            branch=branch,
            branch_steps=len(branch_steps),
        )
        await self.execute_steps(branch_steps, context, tree, depth + 1)

    async def _execute_loop(
        self, step: StepNode, context: ExecutionContext, tree: StepTree, depth: int
    ) -> None:
        config = step.config
        items = resolve_reference(config.get("items"), context)
        if not isinstance(items, (list, tuple)):
            raise WorkflowDefinitionError("Loop items must be an array")

        variable_name = config.get("variableName")
        if not variable_name:
            raise WorkflowDefinitionError("Loop step requires a variableName")

        children = tree.children_of(step.id)
        for item in items:
            context.variables[variable_name] = item
            await self.execute_steps(children, context, tree, depth + 1)

    async def _execute_delay(
        self, step: StepNode, context: ExecutionContext, tree: StepTree, depth: int
    ) -> None:
        duration_ms = float(step.config.get("duration") or 0)
        await context.sleep(max(duration_ms, 0) / 1000)

    async def _execute_webhook(
        self, step: StepNode, context: ExecutionContext, tree: StepTree, depth: int
    ) -> None:
        config = step.config
        url = config.get("url")
        if not url:
            raise WorkflowDefinitionError("Webhook step requires a url")

        body = config.get("body")
        response = await self._egress.request(
            url=url,
            method=config.get("method") or "POST",
            headers=config.get("headers") or {},
            json_body=interpolate(body, context) if body else None,
        )
        context.variables["webhookResponse"] = response

    async def _execute_notification(
        self, step: StepNode, context: ExecutionContext, tree: StepTree, depth: int
    ) -> None:
        config = step.config
        await self._domain_store.create_notification(
            config.get("userId"),
            interpolate(config.get("title"), context) or "",
            interpolate(config.get("message"), context) or "",
        )
