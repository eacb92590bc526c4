"""Operator link tokens and public share links.

Operators reach the authoring API through a signed link instead of a login:
the token carries `role="operator"`, the operator id in `sub`, and an `exp`
timestamp, and is signed with HMAC-SHA256 over `SECRET_KEY`. Respondents
never need a token; they get the plain share URL of a form.
"""
# app/services/links.py
import base64
import hashlib
import hmac
import json
import time
from typing import Optional

from formdesk.app.core.config import settings

OPERATOR_ROLE = "operator"


def _b64u_encode(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode()


def _b64u_decode(s: str) -> bytes:
    return base64.urlsafe_b64decode(s + "=" * (-len(s) % 4))


def _sign(raw: bytes) -> bytes:
    return hmac.new(settings.SECRET_KEY.encode(), raw, hashlib.sha256).digest()


def sign_token(payload: dict, ttl_sec: int) -> str:
    """Sign `payload` with an expiry `ttl_sec` seconds from now.

    Returns a `<b64(json)>.<b64(sig)>` string, URL-safe without padding.
    """
    data = payload | {"exp": int(time.time()) + int(ttl_sec)}
    raw = json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode()
    return f"{_b64u_encode(raw)}.{_b64u_encode(_sign(raw))}"


def verify_token(token: str) -> Optional[dict]:
    """Return the claims of a correctly signed, unexpired token, else None."""
    try:
        raw_b64, sig_b64 = token.split(".", 1)
        raw, sig = _b64u_decode(raw_b64), _b64u_decode(sig_b64)
    except ValueError:
        return None
    if not hmac.compare_digest(sig, _sign(raw)):
        return None

    try:
        data = json.loads(raw.decode())
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(data, dict) or not isinstance(data.get("exp"), int) or data["exp"] < int(time.time()):
        return None
    return data


def operator_token(operator_id: str) -> str:
    return sign_token({"role": OPERATOR_ROLE, "sub": operator_id}, ttl_sec=settings.OPERATOR_LINK_TTL)


def operator_from_token(token: str) -> Optional[str]:
    """Operator id carried by an operator link token, or None.

    Tokens signed for any other role, or without a string `sub`, are refused.
    """
    claims = verify_token(token)
    if not claims or claims.get("role") != OPERATOR_ROLE:
        return None
    sub = claims.get("sub")
    return sub if isinstance(sub, str) and sub else None


def form_share_url(form_id: str) -> str:
    """Public link respondents open to fill in the form."""
    return f"{settings.BACKEND_URL.rstrip('/')}/form/{form_id}"
