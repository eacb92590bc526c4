# app/core/security.py
from fastapi import HTTPException, Query, status
from formdesk.app.services.links import operator_from_token


def require_operator(t: str = Query(...)) -> str:
    """Resolve the operator id from a signed operator link token."""
    operator_id = operator_from_token(t)
    if operator_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return operator_id
