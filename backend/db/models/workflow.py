"""Workflow model for the workflow automation runtime."""

from typing import Optional

from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import TriggerType
from db.base import BaseModel


class Workflow(BaseModel):
    """Workflow model representing a versioned automation definition.

    Attributes:
        id: Unique identifier (UUID string)
        workspace_id: Owning workspace
        name: Workflow name
        description: Workflow description
        icon: Presentation icon
        color: Presentation color
        trigger: Trigger descriptor, e.g. {"type": "manual"}
        active: Whether the workflow can be executed
        version: Incremented on every update
        created_by: User who created the workflow
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    __tablename__ = "workflows"

    workspace_id: Mapped[str] = mapped_column(nullable=False, index=True)
    created_by: Mapped[Optional[str]] = mapped_column(nullable=True, index=True)
    name: Mapped[str] = mapped_column(nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(nullable=True)
    color: Mapped[Optional[str]] = mapped_column(nullable=True)
    trigger: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=lambda: {"type": TriggerType.MANUAL.value}
    )
    active: Mapped[bool] = mapped_column(default=True, index=True)
    version: Mapped[int] = mapped_column(default=1)

    # Relationships
    steps: Mapped[list["WorkflowStep"]] = relationship(
        "WorkflowStep",
        back_populates="workflow",
        order_by="WorkflowStep.position",
        lazy="noload",
    )
    executions: Mapped[list["Execution"]] = relationship(
        "Execution",
        back_populates="workflow",
        lazy="noload",
    )
