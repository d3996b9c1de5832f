"""Constants and enums for the workflow automation runtime."""

from enum import Enum


class ExecutionStatus(str, Enum):
    """Workflow execution status."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.RUNNING


class StepType(str, Enum):
    """Kinds of workflow steps understood by the step executor."""

    ACTION = "action"
    CONDITION = "condition"
    LOOP = "loop"
    DELAY = "delay"
    WEBHOOK = "webhook"
    NOTIFICATION = "notification"


class ActionType(str, Enum):
    """Operations an ``action`` step can perform."""

    CREATE_TASK = "create_task"
    UPDATE_TASK = "update_task"
    DELETE_TASK = "delete_task"
    SET_VARIABLE = "set_variable"


class ConditionOperator(str, Enum):
    """Comparison operators for ``condition`` steps."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"


class StepLogStatus(str, Enum):
    """Status recorded in an execution log entry."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


class TriggerType(str, Enum):
    """Workflow trigger descriptor type."""

    MANUAL = "manual"
    WEBHOOK = "webhook"
    SCHEDULED = "scheduled"
    EVENT = "event"


# Steps with these kinds own children through parent_id
CONTAINER_STEP_TYPES = frozenset({StepType.CONDITION.value, StepType.LOOP.value})

DEFAULT_TASK_STATUS = "TODO"
DEFAULT_TASK_PRIORITY = "MEDIUM"
DEFAULT_EXECUTION_LIST_LIMIT = 50
