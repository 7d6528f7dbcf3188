# gatehouse/core/security.py
"""
Security module for credential checks and client identification.
Handles tier-secret hashing/verification and client IP extraction.

There are no per-user passwords: each role tier has one shared secret held
server-side (OWNER_PASSWORD / ADMIN_PASSWORD / USER_PASSWORD). The role of a
session is derived solely from which tier secret the presented credential
matches.
"""
import logging
from functools import lru_cache

from passlib.context import CryptContext
from starlette.requests import HTTPConnection

from gatehouse.config import settings
from gatehouse.models.session import Role

logger = logging.getLogger("uvicorn.error")

# Password hashing context
# Argon2 only; tier secrets are hashed once and the plain values are not kept
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for secret hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)

NORMALIZATION_MODES = ("exact", "strip", "casefold")

# Most privileged first: if two tiers ever share a secret, the higher one wins
TIER_ORDER = (Role.OWNER, Role.ADMIN, Role.USER)


def normalize_credential(raw: str, mode: str | None = None) -> str:
    """
    Apply the configured normalization to a credential.

    Args:
        raw: Credential as presented (or as configured)
        mode: "exact", "strip" or "casefold"; defaults to settings.credential_normalization

    Returns:
        Normalized credential string

    Raises:
        ValueError: If the mode is unknown
    """
    mode = mode or settings.credential_normalization
    if mode == "exact":
        return raw
    if mode == "strip":
        return raw.strip()
    if mode == "casefold":
        return raw.strip().casefold()
    raise ValueError(f"unknown credential normalization mode: {mode!r}")


def _to_hash(secret: str, mode: str) -> str:
    # Values that are already argon2 hashes are trusted as-is
    if pwd_context.identify(secret) is not None:
        return secret
    return pwd_context.hash(normalize_credential(secret, mode))


class TierKeyring:
    """
    Hashed tier secrets, checked most-privileged-first.

    Args:
        secrets: Mapping of role -> configured secret (plain text or argon2 hash).
                 Tiers with an empty/missing secret can never match.
        mode: Credential normalization mode applied to both sides
    """

    def __init__(self, secrets: dict[Role, str | None], mode: str = "strip"):
        if mode not in NORMALIZATION_MODES:
            raise ValueError(f"unknown credential normalization mode: {mode!r}")
        self.mode = mode
        self._hashes: dict[Role, str] = {
            role: _to_hash(secret, mode) for role, secret in secrets.items() if secret
        }

    @property
    def configured_tiers(self) -> list[Role]:
        return [role for role in TIER_ORDER if role in self._hashes]

    def resolve(self, credential: str) -> Role | None:
        """
        Return the role whose secret matches the credential, or None.
        """
        candidate = normalize_credential(credential, self.mode)
        if not candidate:
            return None
        for role in TIER_ORDER:
            hashed = self._hashes.get(role)
            if hashed and pwd_context.verify(candidate, hashed):
                return role
        return None


@lru_cache(maxsize=1)
def get_keyring() -> TierKeyring:
    """Build the keyring from settings once per process."""
    keyring = TierKeyring(
        {
            Role.OWNER: settings.owner_password,
            Role.ADMIN: settings.admin_password,
            Role.USER: settings.user_password,
        },
        mode=settings.credential_normalization,
    )
    missing = [r.value for r in TIER_ORDER if r not in keyring.configured_tiers]
    if missing:
        logger.warning("[security] tier secrets not configured: %s", ", ".join(missing))
    return keyring


def client_ip(conn: HTTPConnection) -> str | None:
    """
    Best-effort client IP extraction (works for requests and websockets).

    The socket peer is the client unless TRUST_FORWARDED_FOR is on and the
    peer is one of TRUSTED_PROXIES; only then is the first X-Forwarded-For hop
    used. Returns None when unavailable.
    """
    peer = conn.client.host if conn.client and conn.client.host else None
    if settings.trust_forwarded_for and peer and peer in settings.trusted_proxies:
        xff = conn.headers.get("X-Forwarded-For")
        if xff:
            first = xff.split(",", 1)[0].strip()
            if first:
                return first
    return peer
