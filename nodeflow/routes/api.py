"""REST API router combining the resource routers."""

from fastapi import APIRouter

from .executions import router as executions_router
from .nodes import router as nodes_router
from .triggers import router as triggers_router
from .workflows import router as workflows_router

router = APIRouter(prefix="/api")

router.include_router(workflows_router, tags=["Workflows"])
router.include_router(triggers_router, tags=["Triggers"])
router.include_router(executions_router, tags=["Executions"])
router.include_router(nodes_router, tags=["Nodes"])
