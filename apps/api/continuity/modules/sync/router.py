from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from continuity.core.database import Database
from continuity.deps import get_db, get_request_id

from .schemas import SyncOut
from .service import sync_now

router = APIRouter(tags=["sync"])


@router.post("/sync", response_model=SyncOut)
def api_sync(db: Database = Depends(get_db), request_id: Optional[str] = Depends(get_request_id)) -> SyncOut:
    return SyncOut(**sync_now(db, request_id))
