"""FastAPI dependency injection functions."""

from sqlalchemy.ext.asyncio import AsyncSession
import logging

from db.database import get_session_factory
from triggers.webhook import WebhookTriggerGateway, get_webhook_gateway
from workflow.controller import ExecutionController, get_execution_controller

logger = logging.getLogger(__name__)


async def get_db() -> AsyncSession:
    """
    Provide a database session for API endpoints.

    Yields an async SQLAlchemy session that is automatically
    committed on success or rolled back on error.
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Database error: {str(e)}")
            await session.rollback()
            raise
        finally:
            await session.close()


def get_controller() -> ExecutionController:
    """Process-wide execution controller."""
    return get_execution_controller()


def get_gateway() -> WebhookTriggerGateway:
    """Process-wide webhook trigger gateway."""
    return get_webhook_gateway()
