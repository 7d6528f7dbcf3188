# gatehouse/api/v1/routers/waiting_list.py
from fastapi import APIRouter, Depends, Query, Request
from gatehouse.api.v1.deps import get_caller, resolve_caller
from gatehouse.api.v1.serializers import entry_to_dict
from gatehouse.core.errors import BadRequest
from gatehouse.models.session import Session
from gatehouse.models.waiting_list import WaitingStatus
from gatehouse.schemas.auth import DeviceIn
from gatehouse.schemas.waiting_list import ReviewIn
from gatehouse.services import waiting_list as waiting_service

router = APIRouter(prefix="/waiting-list", tags=["waiting-list"])

@router.get("/status")
async def my_status(device_id: str = Query(min_length=1, max_length=128)):
    """
    Let a queued device poll its own admission status.

    No session is required (a queued device has none yet). Returns
    {"status": None} for devices that never asked for access.
    """
    entry = await waiting_service.entry_for_device(device_id)
    status = entry.status.value if entry else None
    return {"success": True, "data": {"status": status}}

@router.get("")
async def list_entries(
    caller: Session = Depends(get_caller),
    status: str | None = Query(default=None, description="pending / approved / denied"),
):
    """
    List waiting-list entries, newest first (owner only).
    """
    wanted = None
    if status:
        try:
            wanted = WaitingStatus(status)
        except ValueError:
            raise BadRequest("status must be pending, approved or denied", code="INVALID_STATUS")
    entries = await waiting_service.list_entries(caller, wanted)
    return {"success": True, "data": {"items": [entry_to_dict(e) for e in entries],
                                      "total": len(entries)}}

@router.post("/{waiting_id}/review")
async def review_entry(waiting_id: str, body: ReviewIn, request: Request):
    """
    Approve or deny a waiting-list entry (owner only).

    Approved devices get a session on their next login; denied devices are
    refused on every login attempt.

    Error codes:
        - INVALID_DECISION (400)
        - INSUFFICIENT_ROLE (403)
        - WAITING_ENTRY_NOT_FOUND (404)
    """
    caller = await resolve_caller(request, body.device_id)
    entry = await waiting_service.review(caller, waiting_id, body.decision)
    return {"success": True, "data": {"entry": entry_to_dict(entry)}}

@router.post("/{waiting_id}/delete")
async def delete_entry(waiting_id: str, body: DeviceIn, request: Request):
    """
    Remove a waiting-list entry (owner only). The device starts over as
    unknown on its next login attempt.
    """
    caller = await resolve_caller(request, body.device_id)
    await waiting_service.delete_entry(caller, waiting_id)
    return {"success": True, "data": {"ok": True}}
