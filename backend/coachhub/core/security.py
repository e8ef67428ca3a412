from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from typing import Any

import bcrypt
from starlette.responses import Response

from coachhub.core.config import settings

SIGNATURE_FIELD = "signature"
MAX_TOKEN_LENGTH = 4096
_BCRYPT_MAX_BYTES = 72


def now_ms() -> int:
    return int(time.time() * 1000)


# --- Session tokens ---
def _canonical_json(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _signature_for(payload: dict[str, Any], signing_key: str) -> str:
    unsigned = {key: value for key, value in payload.items() if key != SIGNATURE_FIELD}
    return hmac.new(signing_key.encode("utf-8"), _canonical_json(unsigned), hashlib.sha256).hexdigest()


def encode_session_token(payload: dict[str, Any], *, now: int | None = None) -> str:
    """Serialize a session payload to the base64-JSON cookie format.

    `timestamp` (epoch milliseconds) is always stamped here. When
    SESSION_SIGNING_KEY is set, a hex HMAC-SHA256 `signature` field is added;
    the payload itself stays readable without the key.
    """
    body = {key: value for key, value in payload.items() if key != SIGNATURE_FIELD}
    body["timestamp"] = now_ms() if now is None else now
    signing_key = settings.SESSION_SIGNING_KEY
    if signing_key:
        body[SIGNATURE_FIELD] = _signature_for(body, signing_key)
    return base64.b64encode(json.dumps(body, separators=(",", ":")).encode("utf-8")).decode("ascii")


def decode_session_token(token: str | None) -> dict[str, Any] | None:
    """Return the token payload, or None for anything that is not base64 of a JSON object."""
    if not token or len(token) > MAX_TOKEN_LENGTH:
        return None
    try:
        raw = base64.b64decode(token, validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (TypeError, ValueError, RecursionError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def verify_signature(payload: dict[str, Any]) -> bool:
    signing_key = settings.SESSION_SIGNING_KEY
    if not signing_key:
        return True
    provided = payload.get(SIGNATURE_FIELD)
    if not isinstance(provided, str):
        return False
    return hmac.compare_digest(provided, _signature_for(payload, signing_key))


def encode_customer_token(user_id: str, email: str | None, *, now: int | None = None) -> str:
    return encode_session_token({"userId": user_id, "email": email}, now=now)


def encode_trainer_token(trainer_id: str, email: str, *, now: int | None = None) -> str:
    return encode_session_token({"trainerId": trainer_id, "email": email, "role": "trainer"}, now=now)


def encode_admin_token(email: str, *, now: int | None = None) -> str:
    return encode_session_token({"email": email, "role": "admin"}, now=now)


# --- Passwords ---
def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


# --- Cookies ---
def set_session_cookie(response: Response, name: str, token: str) -> None:
    response.set_cookie(
        key=name,
        value=token,
        max_age=settings.SESSION_MAX_AGE_MS // 1000,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response, name: str) -> None:
    response.delete_cookie(
        key=name,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )
