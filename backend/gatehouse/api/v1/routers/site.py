# gatehouse/api/v1/routers/site.py
from fastapi import APIRouter, Request
from gatehouse.api.v1.deps import resolve_caller
from gatehouse.schemas.site import ToggleSiteIn
from gatehouse.services.site_switch import is_site_enabled, set_site_enabled

router = APIRouter(prefix="/site", tags=["site"])

@router.get("/status")
async def site_status():
    """
    Public read of the site availability switch (true when never set).
    """
    return {"success": True, "data": {"enabled": await is_site_enabled()}}

@router.post("/toggle")
async def toggle_site(body: ToggleSiteIn, request: Request):
    """
    Turn the site on or off (owner only).

    While disabled, every protected endpoint rejects non-owner callers with
    403 SITE_DISABLED; owners keep full access.

    Error codes:
        - INSUFFICIENT_ROLE (403): caller is not an owner
    """
    caller = await resolve_caller(request, body.device_id)
    enabled = await set_site_enabled(caller, body.enabled)
    return {"success": True, "data": {"enabled": enabled}}
