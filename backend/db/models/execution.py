"""Execution model for the workflow automation runtime."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import ExecutionStatus
from db.base import BaseModel


class Execution(BaseModel):
    """Execution model representing one run of a workflow.

    Attributes:
        id: Unique identifier (UUID string)
        workflow_id: Foreign key to Workflow
        status: running, completed, failed or cancelled
        input: Value supplied when the run started
        output: Final context variables of a completed run
        logs: Ordered step log entries
        error: Error message of a failed run
        triggered_by: Free-form source tag (manual, webhook, caller id)
        started_at: Execution start timestamp
        completed_at: Timestamp of the terminal transition
        duration_ms: Wall time between start and terminal transition
    """

    __tablename__ = "executions"

    workflow_id: Mapped[str] = mapped_column(
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        default=ExecutionStatus.RUNNING.value, index=True
    )
    input: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    output: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    logs: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    triggered_by: Mapped[Optional[str]] = mapped_column(nullable=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), index=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    duration_ms: Mapped[Optional[int]] = mapped_column(nullable=True)

    # Relationships
    workflow: Mapped["Workflow"] = relationship(
        "Workflow", back_populates="executions", lazy="noload"
    )
