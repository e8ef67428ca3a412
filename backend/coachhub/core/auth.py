"""Session authentication for the three principal kinds.

Customers carry a self-contained token in the `user_session` cookie. Trainers
and the platform admin are resolved through a `SessionIntrospector`, which
answers `{email, role, trainer_id}` or nothing. Every function here returns
None on failure instead of raising; the FastAPI dependencies at the bottom turn
that into HTTP 401.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Protocol

from fastapi import Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from coachhub.core.config import settings
from coachhub.core.database import get_db
from coachhub.core.security import decode_session_token, now_ms, verify_signature
from coachhub.crud import crud

logger = logging.getLogger(__name__)

UNAUTHORIZED = "Unauthorized"
PLATFORM_ADMIN_REQUIRED = "Unauthorized - Platform admin access required"


class PrincipalKind(str, Enum):
    customer = "customer"
    trainer = "trainer"
    platform_admin = "platform_admin"


@dataclass(frozen=True)
class Principal:
    kind: PrincipalKind
    id: str
    email: str | None
    trainer_id: str | None = None

    def __post_init__(self) -> None:
        if self.kind is PrincipalKind.platform_admin and self.trainer_id is not None:
            raise ValueError("platform admin principals cannot carry a trainer_id")
        if self.kind is PrincipalKind.trainer and self.trainer_id is None:
            raise ValueError("trainer principals require a trainer_id")

    @property
    def is_platform_admin(self) -> bool:
        return self.kind is PrincipalKind.platform_admin

    @property
    def is_trainer(self) -> bool:
        return self.kind is PrincipalKind.trainer


@dataclass(frozen=True)
class SessionRecord:
    email: str | None
    role: str
    trainer_id: str | None = None


def read_fresh_payload(token: str | None, now: int | None = None) -> dict[str, Any] | None:
    """Decode a session token and apply signature and age checks."""
    payload = decode_session_token(token)
    if payload is None:
        return None
    return check_fresh_payload(payload, now)


def check_fresh_payload(payload: dict[str, Any], now: int | None = None) -> dict[str, Any] | None:
    """Signature and age checks on an already decoded payload.

    A token is stale when `now - timestamp` exceeds SESSION_MAX_AGE_MS. There
    is no sliding renewal. Timestamps further ahead than SESSION_CLOCK_SKEW_MS
    are rejected.
    """
    if not verify_signature(payload):
        logger.debug("Rejecting session token with a bad signature")
        return None
    timestamp = payload.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        return None
    current = now_ms() if now is None else now
    if current - timestamp > settings.SESSION_MAX_AGE_MS:
        logger.debug("Rejecting expired session token")
        return None
    if timestamp - current > settings.SESSION_CLOCK_SKEW_MS:
        logger.debug("Rejecting session token stamped in the future")
        return None
    return payload


def authenticate_customer(cookies: Mapping[str, str], now: int | None = None) -> Principal | None:
    payload = read_fresh_payload(cookies.get(settings.CUSTOMER_SESSION_COOKIE), now)
    if payload is None:
        return None
    user_id = payload.get("userId")
    if not user_id:
        return None
    email = payload.get("email")
    return Principal(
        kind=PrincipalKind.customer,
        id=str(user_id),
        email=str(email) if email is not None else None,
    )


class SessionIntrospector(Protocol):
    def introspect(
        self,
        cookies: Mapping[str, str],
        db: DBSession,
        now: int | None = None,
    ) -> SessionRecord | None:
        ...


class TokenSessionIntrospector:
    """Resolves staff sessions from the trainer and admin cookies.

    The trainer cookie is tried first. Once it decodes, its outcome is final:
    a stale or revoked trainer session does not fall back to the
    admin cookie. A trainer session is only honoured while the trainer row
    exists with a verified email and a live subscription.
    """

    def introspect(
        self,
        cookies: Mapping[str, str],
        db: DBSession,
        now: int | None = None,
    ) -> SessionRecord | None:
        trainer_payload = decode_session_token(cookies.get(settings.TRAINER_SESSION_COOKIE))
        if trainer_payload is not None:
            return self._trainer_record(trainer_payload, db, now)
        return self._admin_record(cookies.get(settings.ADMIN_SESSION_COOKIE), now)

    def _trainer_record(self, payload: dict[str, Any], db: DBSession, now: int | None) -> SessionRecord | None:
        payload = check_fresh_payload(payload, now)
        if payload is None or payload.get("role") != "trainer":
            return None
        trainer_id = payload.get("trainerId")
        if not trainer_id:
            return None

        try:
            trainer = crud.get_trainer(db, str(trainer_id))
        except SQLAlchemyError:
            logger.exception("Error fetching trainer %s during session check", trainer_id)
            return None

        if trainer is None:
            logger.warning("Trainer not found for session trainerId=%s", trainer_id)
            return None
        if not trainer.email_verified:
            logger.warning("Trainer email not verified: %s", trainer.email)
            return None
        if trainer.subscription_status == "expired":
            return None
        return SessionRecord(email=trainer.email, role="trainer", trainer_id=trainer.id)

    def _admin_record(self, token: str | None, now: int | None) -> SessionRecord | None:
        payload = read_fresh_payload(token, now)
        if payload is None or payload.get("role") != "admin":
            return None
        email = payload.get("email")
        return SessionRecord(email=str(email) if email is not None else None, role="admin")


def principal_from_record(record: SessionRecord | None) -> Principal | None:
    if record is None:
        return None
    if record.role == "admin" and not record.trainer_id:
        return Principal(kind=PrincipalKind.platform_admin, id=record.email or "admin", email=record.email)
    if record.role in {"admin", "trainer"} and record.trainer_id:
        return Principal(
            kind=PrincipalKind.trainer,
            id=record.trainer_id,
            email=record.email,
            trainer_id=record.trainer_id,
        )
    return None


def authenticate_staff(
    cookies: Mapping[str, str],
    db: DBSession,
    introspector: SessionIntrospector | None = None,
    now: int | None = None,
) -> Principal | None:
    introspector = introspector or TokenSessionIntrospector()
    return principal_from_record(introspector.introspect(cookies, db, now))


# --- FastAPI dependencies ---
def get_session_introspector() -> SessionIntrospector:
    return TokenSessionIntrospector()


def get_current_customer(request: Request) -> Principal:
    principal = authenticate_customer(request.cookies)
    if principal is None:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    return principal


def get_current_staff(
    request: Request,
    db: DBSession = Depends(get_db),
    introspector: SessionIntrospector = Depends(get_session_introspector),
) -> Principal:
    principal = authenticate_staff(request.cookies, db, introspector)
    if principal is None:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    return principal


def require_trainer_id(principal: Principal = Depends(get_current_staff)) -> Principal:
    if principal.trainer_id is None:
        raise HTTPException(status_code=400, detail="Trainer ID required")
    return principal


def require_platform_admin(
    request: Request,
    db: DBSession = Depends(get_db),
    introspector: SessionIntrospector = Depends(get_session_introspector),
) -> Principal:
    principal = authenticate_staff(request.cookies, db, introspector)
    if principal is None or not principal.is_platform_admin:
        raise HTTPException(status_code=401, detail=PLATFORM_ADMIN_REQUIRED)
    return principal
