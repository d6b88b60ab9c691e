"""Shared route dependencies: principal, admin gate and realtime notifier."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request

from xblade.services.realtime_service import SeasonNotifier


@dataclass(frozen=True)
class Principal:
    """Caller identity as validated by the upstream auth layer."""

    id: str
    is_admin: bool = False


def get_principal(request: Request) -> Principal:
    """Read the principal the auth middleware stored on the request.

    Raises:
        HTTPException: 401 when no principal was attached.
    """
    principal = getattr(request.state, "principal", None)
    if not isinstance(principal, Principal):
        raise HTTPException(status_code=401, detail="Authentication required")
    return principal


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal


def get_notifier(request: Request) -> SeasonNotifier:
    return request.app.state.notifier
