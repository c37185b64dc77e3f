"""Request identity supplied by the upstream identity and billing collaborators."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from .config import get_settings
from .entitlements import resolve_plan_id


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user_id


def get_plan_id(x_plan_id: Optional[str] = Header(default=None)) -> str:
    candidate = (x_plan_id or "").strip() or get_settings().default_plan_id
    return resolve_plan_id(candidate)


__all__ = ["get_current_user_id", "get_plan_id"]
