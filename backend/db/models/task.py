"""Task model: the domain record that action steps create and modify."""

from typing import Any, Optional

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from core.constants import DEFAULT_TASK_PRIORITY, DEFAULT_TASK_STATUS
from db.base import BaseModel


class Task(BaseModel):
    """Task model.

    Attributes:
        id: Unique identifier (UUID string)
        project_id: Owning project
        title: Task title
        description: Task description
        status: Board status (TODO, IN_PROGRESS, DONE, ...)
        priority: LOW, MEDIUM, HIGH, URGENT
        assignee_id: Assigned user
    """

    __tablename__ = "tasks"

    project_id: Mapped[Optional[str]] = mapped_column(nullable=True, index=True)
    title: Mapped[str] = mapped_column(nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(default=DEFAULT_TASK_STATUS, index=True)
    priority: Mapped[str] = mapped_column(default=DEFAULT_TASK_PRIORITY)
    assignee_id: Mapped[Optional[str]] = mapped_column(nullable=True, index=True)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation stored into workflow variables."""
        return {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "assigneeId": self.assignee_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
