from __future__ import annotations

from typing import Optional

from fastapi import Request

from continuity.core.database import Database


def get_db(request: Request) -> Database:
    return request.app.state.database


def get_request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)
