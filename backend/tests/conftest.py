"""Shared pytest fixtures for the workflow automation runtime test suite.

Provides:
- Per-test async SQLite database file (no PostgreSQL needed for tests)
- Session factory and AsyncSession
- Execution controller wired to a stub HTTP transport
- FastAPI test client (httpx.AsyncClient)
- Workflow seeding helper
"""

import os
from typing import Any, AsyncGenerator, Callable, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

# Override settings BEFORE any app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_FORMAT", "text")

from db.base import Base  # noqa: E402
from db.database import create_session_factory  # noqa: E402


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Create an engine on a fresh database file for one test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )
    # Import all models so Base.metadata knows about them
    import db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for seeding and assertions. Commit before running workflows."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Runtime fixtures
# ---------------------------------------------------------------------------

class StubHttp:
    """Records outbound requests and answers with a canned JSON body."""

    def __init__(self, status_code: int = 200, body: Any = None):
        self.status_code = status_code
        self.body = {"ok": True} if body is None else body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture
def stub_http() -> StubHttp:
    return StubHttp()


@pytest.fixture
def make_controller(session_factory, stub_http) -> Callable[..., Any]:
    """Build an ExecutionController over the test database and stub HTTP."""
    from integrations.http_egress import HttpEgress
    from services.domain_store import SqlDomainStore
    from workflow.controller import ExecutionController
    from workflow.engine import StepExecutor

    def _make(preserve_logs_on_failure: bool = False, max_depth: int = 200):
        executor = StepExecutor(
            domain_store=SqlDomainStore(session_factory),
            egress=HttpEgress(transport=httpx.MockTransport(stub_http)),
            max_depth=max_depth,
        )
        return ExecutionController(
            session_factory,
            executor,
            preserve_logs_on_failure=preserve_logs_on_failure,
        )

    return _make


@pytest.fixture
def controller(make_controller):
    return make_controller()


@pytest.fixture
def make_workflow(session_factory) -> Callable[..., Any]:
    """Create and commit a workflow, returning its id."""
    from services.workflow_service import WorkflowService

    async def _make(
        steps: list[dict[str, Any]],
        name: str = "Test Workflow",
        workspace_id: str = "ws-1",
        active: bool = True,
        trigger: Optional[dict] = None,
    ) -> str:
        async with session_factory() as session:
            svc = WorkflowService(session)
            wf = await svc.create_workflow(
                workspace_id=workspace_id,
                name=name,
                steps=steps,
                trigger=trigger,
            )
            if not active:
                wf.active = False
            await session.commit()
            return wf.id

    return _make


# ---------------------------------------------------------------------------
# App / HTTP client fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(db_engine, session_factory, controller):
    """Create a FastAPI app instance wired to the test database."""
    import db.database as db_mod
    from app.dependencies import get_controller, get_gateway
    from triggers.webhook import WebhookTriggerGateway, reset_webhook_gateway
    from workflow.controller import reset_execution_controller

    original_engine = db_mod.engine
    original_session = db_mod.AsyncSessionLocal
    db_mod.engine = db_engine
    db_mod.AsyncSessionLocal = session_factory
    reset_execution_controller()
    reset_webhook_gateway()

    from app.main import create_app
    test_app = create_app()
    gateway = WebhookTriggerGateway(session_factory, controller)
    test_app.dependency_overrides[get_controller] = lambda: controller
    test_app.dependency_overrides[get_gateway] = lambda: gateway

    yield test_app

    # Restore originals
    db_mod.engine = original_engine
    db_mod.AsyncSessionLocal = original_session
    reset_execution_controller()
    reset_webhook_gateway()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac
