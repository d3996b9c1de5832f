"""Workflow schemas."""

from pydantic import AliasChoices, BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

StepKind = Literal["action", "condition", "loop", "delay", "webhook", "notification"]


class WorkflowStepInput(BaseModel):
    """A step as submitted with a workflow create/update.

    ``id`` is a client-side handle only. Other steps in the same request may
    reference it through ``parent_id``/``next_step_id``; the server stores
    fresh ids.
    """

    id: Optional[str] = Field(default=None, description="Client-side step handle")
    name: str = Field(min_length=1, description="Human-readable step name")
    type: StepKind = Field(description="Step kind")
    config: Dict[str, Any] = Field(default_factory=dict, description="Kind-specific configuration")
    parent_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("parent_id", "parentId"),
        description="Handle of the enclosing condition/loop step",
    )
    next_step_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("next_step_id", "nextStepId"),
        description="Handle of the step to run after this one",
    )


class WorkflowCreate(BaseModel):
    """Request to create a workflow."""

    workspace_id: str = Field(min_length=1, description="Owning workspace")
    name: str = Field(min_length=1, description="Workflow name")
    description: Optional[str] = Field(default=None, description="Workflow description")
    icon: Optional[str] = Field(default=None, description="Display icon")
    color: Optional[str] = Field(default=None, description="Display color")
    trigger: Optional[Dict[str, Any]] = Field(default=None, description="Trigger configuration")
    created_by: Optional[str] = Field(default=None, description="Creating user ID")
    steps: List[WorkflowStepInput] = Field(default_factory=list, description="Ordered step list")


class WorkflowUpdate(BaseModel):
    """Request to update a workflow. ``steps`` replaces the whole step set."""

    name: Optional[str] = Field(default=None, min_length=1, description="Workflow name")
    description: Optional[str] = Field(default=None, description="Workflow description")
    icon: Optional[str] = Field(default=None, description="Display icon")
    color: Optional[str] = Field(default=None, description="Display color")
    trigger: Optional[Dict[str, Any]] = Field(default=None, description="Trigger configuration")
    active: Optional[bool] = Field(default=None, description="Whether the workflow may run")
    steps: Optional[List[WorkflowStepInput]] = Field(default=None, description="Replacement step list")


class WorkflowStepResponse(BaseModel):
    """Stored workflow step."""

    id: str
    name: str
    type: str
    config: Dict[str, Any]
    position: int
    parent_id: Optional[str] = None
    next_step_id: Optional[str] = None

    class Config:
        from_attributes = True


class WorkflowResponse(BaseModel):
    """Workflow information response."""

    id: str = Field(description="Workflow ID")
    workspace_id: str = Field(description="Owning workspace")
    name: str = Field(description="Workflow name")
    description: Optional[str] = Field(default=None, description="Workflow description")
    icon: Optional[str] = Field(default=None, description="Display icon")
    color: Optional[str] = Field(default=None, description="Display color")
    trigger: Dict[str, Any] = Field(description="Trigger configuration")
    active: bool = Field(description="Whether the workflow may run")
    version: int = Field(description="Incremented on every update")
    created_by: Optional[str] = Field(default=None, description="Creating user ID")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")
    steps: List[WorkflowStepResponse] = Field(default_factory=list, description="Steps ordered by position")
    execution_count: Optional[int] = Field(default=None, description="Number of recorded executions")
