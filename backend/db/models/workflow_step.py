"""WorkflowStep model for the workflow automation runtime."""

from typing import Optional

from sqlalchemy import JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import BaseModel


class WorkflowStep(BaseModel):
    """WorkflowStep model representing a single node of a workflow's step tree.

    Attributes:
        id: Unique identifier (UUID string)
        workflow_id: Foreign key to Workflow
        name: Step name
        type: Step kind (action, condition, loop, delay, webhook, notification)
        config: JSON configuration for the step
        position: Authoring order; top-level steps run in this order
        parent_id: Owning condition/loop step, None for top-level steps
        next_step_id: Explicit successor run after this step succeeds
    """

    __tablename__ = "workflow_steps"

    workflow_id: Mapped[str] = mapped_column(
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(nullable=False)
    type: Mapped[str] = mapped_column(nullable=False, index=True)
    config: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    # Plain columns: references are validated and remapped by WorkflowService
    parent_id: Mapped[Optional[str]] = mapped_column(nullable=True, index=True)
    next_step_id: Mapped[Optional[str]] = mapped_column(nullable=True)

    # Relationships
    workflow: Mapped["Workflow"] = relationship(
        "Workflow", back_populates="steps", lazy="noload"
    )
