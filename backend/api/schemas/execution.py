"""Execution schemas."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional


class ExecuteRequest(BaseModel):
    """Request to run a workflow."""

    input: Any = Field(default=None, description="Opaque input exposed to steps as {{input...}}")
    triggered_by: Optional[str] = Field(default=None, description="Source tag stored on the execution")


class ExecuteResponse(BaseModel):
    """Result of a successful run."""

    success: bool = True
    execution_id: str = Field(description="Execution ID")
    output: Dict[str, Any] = Field(description="Final workflow variables")


class ExecutionWorkflowSummary(BaseModel):
    id: str
    name: str
    workspace_id: str

    class Config:
        from_attributes = True


class ExecutionResponse(BaseModel):
    """Execution record response."""

    id: str = Field(description="Execution ID")
    workflow_id: str = Field(description="Workflow ID")
    status: str = Field(description="running, completed, failed or cancelled")
    input: Any = Field(default=None, description="Input supplied to the run")
    output: Optional[Dict[str, Any]] = Field(default=None, description="Final variables when completed")
    logs: List[Dict[str, Any]] = Field(default_factory=list, description="Per-step log entries")
    error: Optional[str] = Field(default=None, description="Failure message")
    triggered_by: Optional[str] = Field(default=None, description="Source tag")
    started_at: datetime = Field(description="Start timestamp")
    completed_at: Optional[datetime] = Field(default=None, description="End timestamp")
    duration_ms: Optional[int] = Field(default=None, description="Run duration in milliseconds")
    workflow: Optional[ExecutionWorkflowSummary] = Field(default=None, description="Owning workflow")

    class Config:
        from_attributes = True
