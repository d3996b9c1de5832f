"""Database models for the workflow automation runtime.

This module imports all models to ensure they are registered
with SQLAlchemy's declarative base.
"""

from db.models.workflow import Workflow
from db.models.workflow_step import WorkflowStep
from db.models.execution import Execution
from db.models.webhook_trigger import WebhookTrigger
from db.models.task import Task
from db.models.notification import Notification

__all__ = [
    "Workflow",
    "WorkflowStep",
    "Execution",
    "WebhookTrigger",
    "Task",
    "Notification",
]
