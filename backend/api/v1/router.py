"""API v1 aggregated router, mounted under ``API_V1_PREFIX`` in main.py."""

from fastapi import APIRouter

from api.routes import executions, health, webhooks, workflows

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["Health"])

# /workflows/webhooks/... and /workflows/executions/... are registered ahead
# of the workflow routes so the literal segments match before /{workflow_id}.
for module, tag in ((webhooks, "Webhooks"), (executions, "Executions"), (workflows, "Workflows")):
    api_v1_router.include_router(module.router, prefix="/workflows", tags=[tag])
