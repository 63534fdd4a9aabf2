import logging

from fastapi import APIRouter

from admin_dashboard.vars import PROXY_PREFIX, SERVICE_NAME, UPSTREAM_BASE_URL
from .app_proxy.route import router as proxy_router
from .dashboard.route import router as dashboard_router

router = APIRouter()

logger = logging.getLogger("uvicorn.error")

logger.info(f"Forwarding {PROXY_PREFIX}/* to {UPSTREAM_BASE_URL}{PROXY_PREFIX}/*")


@router.get("/health")
async def health():
    """Liveness of the dashboard server itself; the gateway is not contacted."""
    return {"status": "UP", "service": SERVICE_NAME}


router.include_router(proxy_router)
router.include_router(dashboard_router)
