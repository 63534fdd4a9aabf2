import logging
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from admin_dashboard.dashboard.forms import notification_from_form, preference_from_form
from admin_dashboard.dashboard.gateway_client import GatewayClient, GatewayError
from admin_dashboard.dashboard.service import DashboardService, filter_users

router = APIRouter(prefix="/dashboard")
logger = logging.getLogger("uvicorn.error")


async def get_gateway_client() -> AsyncIterator[GatewayClient]:
    async with GatewayClient() as client:
        yield client


def _gateway_error_response(action: str, e: GatewayError) -> JSONResponse:
    if e.status_code is None:
        logger.error(f"[Dashboard] Gateway unreachable while trying to {action}: {e.message}")
        return JSONResponse(
            status_code=502,
            content={"error": "Failed to connect to API Gateway", "details": e.message},
        )
    logger.warning(f"[Dashboard] Gateway answered {e.status_code} to {action}: {e.message}")
    return JSONResponse(
        status_code=e.status_code,
        content={"error": f"Failed to {action}", "details": e.message},
    )


def _validation_error(e: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=[
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in e.errors()
        ],
    )


@router.get("/summary")
async def dashboard_summary(
    q: Optional[str] = Query(None, description="Filter the users list"),
    client: GatewayClient = Depends(get_gateway_client),
):
    """Everything the admin overview page shows, loaded in one call."""
    snapshot = await DashboardService(client).refresh()
    if q:
        snapshot.users = filter_users(snapshot.users, q)
    return snapshot.model_dump(mode="json")


@router.post("/preferences", status_code=201)
async def create_preference_from_form(
    form: Dict[str, Any] = Body(...),
    client: GatewayClient = Depends(get_gateway_client),
):
    try:
        preference = preference_from_form(form)
    except ValidationError as e:
        raise _validation_error(e)

    try:
        created = await client.create_preference(preference)
    except GatewayError as e:
        return _gateway_error_response("create preference", e)
    logger.info(f"[Dashboard] Created preferences for {created.userId}")
    return created.model_dump(mode="json")


@router.put("/preferences/{user_id}")
async def update_preference_from_form(
    user_id: str,
    form: Dict[str, Any] = Body(...),
    client: GatewayClient = Depends(get_gateway_client),
):
    try:
        preference = preference_from_form(form, user_id=user_id)
    except ValidationError as e:
        raise _validation_error(e)

    try:
        updated = await client.update_preference(user_id, preference)
    except GatewayError as e:
        return _gateway_error_response("update preference", e)
    logger.info(f"[Dashboard] Updated preferences for {user_id}")
    return updated.model_dump(mode="json")


@router.post("/notifications", status_code=201)
async def send_notification_from_form(
    form: Dict[str, Any] = Body(...),
    client: GatewayClient = Depends(get_gateway_client),
):
    try:
        notification = notification_from_form(form)
    except ValidationError as e:
        raise _validation_error(e)

    try:
        sent = await client.send_notification(notification)
    except GatewayError as e:
        return _gateway_error_response("send notification", e)
    logger.info(f"[Dashboard] Notification sent to {notification.userId}: {sent.status}")
    return sent.model_dump(mode="json")
