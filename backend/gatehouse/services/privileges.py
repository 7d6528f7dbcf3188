# gatehouse/services/privileges.py
"""
Role & privilege evaluation.

One table decides every privileged operation. Routers never compare roles
themselves; they call ensure_allowed() (or authorize() when they only need
the verdict).

Hierarchy: owner > admin > user, no lateral privileges.
"""
from dataclasses import dataclass
from enum import Enum

from gatehouse.core.errors import Forbidden
from gatehouse.models.session import Role


class Operation(str, Enum):
    BAN = "ban"
    UNBAN = "unban"
    DELETE_SESSION = "delete_session"
    CHANGE_ROLE = "change_role"
    TOGGLE_SITE = "toggle_site"
    REVIEW_WAITING_LIST = "review_waiting_list"
    MODERATE_MESSAGE = "moderate_message"
    VIEW_ADMIN_DATA = "view_admin_data"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    code: str = "OK"
    message: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)

# operation -> actor role -> target roles the actor may act on.
# None as the value means "no target involved": the actor may perform it.
_TARGETED = {
    Operation.BAN: {
        Role.ADMIN: {Role.USER},
        Role.OWNER: {Role.USER, Role.ADMIN},
    },
    # Mirrors BAN so that "may remove" never exceeds "may ban"
    Operation.DELETE_SESSION: {
        Role.ADMIN: {Role.USER},
        Role.OWNER: {Role.USER, Role.ADMIN},
    },
    Operation.CHANGE_ROLE: {
        Role.OWNER: {Role.USER, Role.ADMIN},
    },
    Operation.UNBAN: {
        Role.ADMIN: {Role.USER, Role.ADMIN, Role.OWNER},
        Role.OWNER: {Role.USER, Role.ADMIN, Role.OWNER},
    },
}

_UNTARGETED = {
    Operation.TOGGLE_SITE: {Role.OWNER},
    Operation.REVIEW_WAITING_LIST: {Role.OWNER},
    Operation.MODERATE_MESSAGE: {Role.ADMIN, Role.OWNER},
    Operation.VIEW_ADMIN_DATA: {Role.ADMIN, Role.OWNER},
}

# Operations an actor may never aim at itself, whatever its role
_NO_SELF = {Operation.BAN, Operation.DELETE_SESSION, Operation.CHANGE_ROLE}

_DENIAL_MESSAGES = {
    Operation.BAN: "You cannot ban this session",
    Operation.UNBAN: "Only admins and owners can unban",
    Operation.DELETE_SESSION: "You cannot delete this session",
    Operation.CHANGE_ROLE: "Only owners can change roles, and owner roles cannot be changed",
    Operation.TOGGLE_SITE: "Only owners can toggle the site",
    Operation.REVIEW_WAITING_LIST: "Only owners can manage the waiting list",
    Operation.MODERATE_MESSAGE: "Only admins and owners can delete messages for everyone",
    Operation.VIEW_ADMIN_DATA: "Admin access required",
}


def authorize(
    actor: Role,
    operation: Operation,
    target: Role | None = None,
    *,
    is_self: bool = False,
) -> Decision:
    """
    Decide whether `actor` may perform `operation` (on a session of role `target`).

    Args:
        actor: Role of the calling session
        operation: Requested operation
        target: Role of the target session, for targeted operations. A target
                without a session (e.g. a device only on the waiting list) is
                passed as Role.USER by callers.
        is_self: True when the target is the caller's own session

    Returns:
        Decision (truthy when allowed) with a machine-readable code
    """
    actor = Role(actor)
    if is_self and operation in _NO_SELF:
        return Decision(False, "CANNOT_TARGET_SELF", "You cannot do this to your own session")

    if operation in _UNTARGETED:
        if actor in _UNTARGETED[operation]:
            return ALLOW
        return Decision(False, "INSUFFICIENT_ROLE", _DENIAL_MESSAGES[operation])

    allowed_targets = _TARGETED[operation].get(actor)
    if not allowed_targets:
        return Decision(False, "INSUFFICIENT_ROLE", _DENIAL_MESSAGES[operation])
    if target is None:
        raise ValueError(f"{operation.value} requires a target role")
    if Role(target) not in allowed_targets:
        code = "TARGET_IS_OWNER" if target == Role.OWNER else "TARGET_ROLE_TOO_HIGH"
        return Decision(False, code, _DENIAL_MESSAGES[operation])
    return ALLOW


def ensure_allowed(
    actor: Role,
    operation: Operation,
    target: Role | None = None,
    *,
    is_self: bool = False,
) -> None:
    """Same as authorize(), but raises Forbidden on denial."""
    decision = authorize(actor, operation, target, is_self=is_self)
    if not decision:
        raise Forbidden(decision.message, code=decision.code)


def capabilities(role: Role) -> dict[str, bool]:
    """
    Capability flags for a role, for clients deciding what to render.
    They are advisory: every operation is re-authorized server-side.
    """
    role = Role(role)
    return {
        "canBanUsers": bool(authorize(role, Operation.BAN, Role.USER)),
        "canBanAdmins": bool(authorize(role, Operation.BAN, Role.ADMIN)),
        "canUnban": bool(authorize(role, Operation.UNBAN, Role.USER)),
        "canChangeRoles": bool(authorize(role, Operation.CHANGE_ROLE, Role.USER)),
        "canToggleSite": bool(authorize(role, Operation.TOGGLE_SITE)),
        "canReviewWaitingList": bool(authorize(role, Operation.REVIEW_WAITING_LIST)),
        "canModerate": bool(authorize(role, Operation.MODERATE_MESSAGE)),
    }
