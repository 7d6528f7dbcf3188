# gatehouse/services/waiting_list.py
"""
Waiting-list gate.

Per device: unknown -> pending -> approved | denied.
Only an owner review changes status after the initial insert; entries never
expire. Owners never pass through this gate.
"""
import datetime as dt
import logging
from dataclasses import dataclass
from enum import Enum

from tortoise.exceptions import IntegrityError

from gatehouse.core.errors import BadRequest, NotFound, StorageFailure
from gatehouse.models.session import Session
from gatehouse.models.waiting_list import WaitingListEntry, WaitingStatus
from gatehouse.services.identity import parse_id
from gatehouse.services.privileges import Operation, ensure_allowed

logger = logging.getLogger("uvicorn.error")

WAITING_MESSAGE = "Your access request is pending approval. Please check back later."
DENIED_MESSAGE = "Your access request was denied"


class GateOutcome(str, Enum):
    ADMIT = "admit"
    WAIT = "wait"
    DENY = "deny"


@dataclass(frozen=True)
class GateResult:
    outcome: GateOutcome
    entry: WaitingListEntry | None = None

    @property
    def message(self) -> str:
        if self.outcome == GateOutcome.WAIT:
            return WAITING_MESSAGE
        if self.outcome == GateOutcome.DENY:
            return DENIED_MESSAGE
        return ""


class Decision(str, Enum):
    APPROVE = "approve"
    DENY = "deny"

    @property
    def status(self) -> WaitingStatus:
        return WaitingStatus.APPROVED if self is Decision.APPROVE else WaitingStatus.DENIED


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


async def _get_or_enqueue(device_id: str, ip_address: str | None) -> WaitingListEntry:
    entry = await WaitingListEntry.get_or_none(device_id=device_id)
    if entry is not None:
        return entry
    try:
        entry = await WaitingListEntry.create(
            device_id=device_id,
            ip_address=ip_address,
            status=WaitingStatus.PENDING,
        )
        logger.info("[waiting] new pending entry id=%s", entry.id)
        return entry
    except IntegrityError:
        # A concurrent attempt from the same device inserted first
        entry = await WaitingListEntry.get_or_none(device_id=device_id)
        if entry is None:
            raise StorageFailure("Waiting list insert conflicted but no entry was found")
        return entry


async def admit(device_id: str, ip_address: str | None = None) -> GateResult:
    """
    Run the gate for a non-owner device that has no session yet.

    - no entry: create a pending one, WAIT
    - pending: WAIT (no duplicate entry)
    - denied: DENY
    - approved: ADMIT
    """
    entry = await _get_or_enqueue(device_id, ip_address)
    if entry.status == WaitingStatus.APPROVED:
        return GateResult(GateOutcome.ADMIT, entry)
    if entry.status == WaitingStatus.DENIED:
        return GateResult(GateOutcome.DENY, entry)
    return GateResult(GateOutcome.WAIT, entry)


async def entry_for_device(device_id: str) -> WaitingListEntry | None:
    return await WaitingListEntry.get_or_none(device_id=device_id)


async def list_entries(actor: Session, status: WaitingStatus | None = None) -> list[WaitingListEntry]:
    ensure_allowed(actor.role, Operation.REVIEW_WAITING_LIST)
    qs = WaitingListEntry.all().order_by("-created_at")
    if status is not None:
        qs = qs.filter(status=status)
    return await qs


async def review(actor: Session, waiting_id: str, decision: Decision | str) -> WaitingListEntry:
    """
    Owner approves or denies an entry.

    Raises:
        Forbidden: caller is not an owner
        BadRequest: unknown decision
        NotFound: no such entry
    """
    ensure_allowed(actor.role, Operation.REVIEW_WAITING_LIST)
    try:
        decision = Decision(decision)
    except ValueError:
        raise BadRequest("decision must be 'approve' or 'deny'", code="INVALID_DECISION")

    entry_id = parse_id(waiting_id)
    entry = await WaitingListEntry.get_or_none(id=entry_id) if entry_id else None
    if entry is None:
        raise NotFound("Waiting list entry not found", code="WAITING_ENTRY_NOT_FOUND")

    entry.status = decision.status
    entry.reviewed_by = actor
    entry.reviewed_at = utc_now()
    await entry.save()
    logger.info("[waiting] entry id=%s %s by session=%s", entry.id, entry.status.value, actor.id)
    return entry


async def delete_entry(actor: Session, waiting_id: str) -> None:
    ensure_allowed(actor.role, Operation.REVIEW_WAITING_LIST)
    entry_id = parse_id(waiting_id)
    deleted = await WaitingListEntry.filter(id=entry_id).delete() if entry_id else 0
    if not deleted:
        raise NotFound("Waiting list entry not found", code="WAITING_ENTRY_NOT_FOUND")
    logger.info("[waiting] entry id=%s deleted by session=%s", waiting_id, actor.id)
