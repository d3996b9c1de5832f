"""Domain store: task and notification persistence used by workflow steps.

Workflow steps never hold a database session. Each call opens a short
session from the factory and commits before returning, so a step's side
effects are durable even if a later step fails (there is no workflow-level
rollback).
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.constants import DEFAULT_TASK_PRIORITY, DEFAULT_TASK_STATUS
from core.exceptions import NotFoundError
from db.models.notification import Notification
from db.models.task import Task

logger = structlog.get_logger(__name__)

# Step config keys (camelCase, as authored) -> Task columns
TASK_FIELD_MAP = {
    "title": "title",
    "description": "description",
    "projectId": "project_id",
    "assigneeId": "assignee_id",
    "status": "status",
    "priority": "priority",
}


class BaseDomainStore(ABC):
    """Operations the step executor performs against the shared domain."""

    @abstractmethod
    async def create_task(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Create a task and return its JSON-safe representation."""
        ...

    @abstractmethod
    async def update_task(self, task_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Update the supplied fields of a task and return it."""
        ...

    @abstractmethod
    async def delete_task(self, task_id: str) -> None:
        ...

    @abstractmethod
    async def create_notification(self, user_id: str, title: str, message: str) -> None:
        ...


class SqlDomainStore(BaseDomainStore):
    """SQLAlchemy implementation of the domain store."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @staticmethod
    def _columns(fields: dict[str, Any]) -> dict[str, Any]:
        return {
            TASK_FIELD_MAP[key]: value
            for key, value in fields.items()
            if key in TASK_FIELD_MAP and value is not None
        }

    async def _get_task(self, session: AsyncSession, task_id: Optional[str]) -> Task:
        task = await session.get(Task, task_id) if task_id else None
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}")
        return task

    async def create_task(self, fields: dict[str, Any]) -> dict[str, Any]:
        data = self._columns(fields)
        data.setdefault("status", DEFAULT_TASK_STATUS)
        data.setdefault("priority", DEFAULT_TASK_PRIORITY)
        async with self._session_factory() as session:
            task = Task(**data)
            session.add(task)
            await session.flush()
            await session.refresh(task)
            result = task.to_dict()
            await session.commit()
        logger.info("Task created", task_id=result["id"])
        return result

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        async with self._session_factory() as session:
            task = await self._get_task(session, task_id)
            for column, value in self._columns(fields).items():
                setattr(task, column, value)
            await session.flush()
            await session.refresh(task)
            result = task.to_dict()
            await session.commit()
        logger.info("Task updated", task_id=task_id)
        return result

    async def delete_task(self, task_id: str) -> None:
        async with self._session_factory() as session:
            task = await self._get_task(session, task_id)
            await session.delete(task)
            await session.commit()
        logger.info("Task deleted", task_id=task_id)

    async def create_notification(self, user_id: str, title: str, message: str) -> None:
        async with self._session_factory() as session:
            session.add(Notification(user_id=user_id, title=title, message=message))
            await session.commit()
        logger.info("Notification created", user_id=user_id)
