from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from continuity.core.database import Database
from continuity.core.paging import paginate
from continuity.deps import get_db
from continuity.modules.scenes.schemas import SceneOut
from continuity.modules.scenes.service import find_by_shooting_day

from .schemas import (
    ShootingDayCreateIn,
    ShootingDayOut,
    ShootingDayOverviewOut,
    ShootingDayPatchIn,
    ShootingDaysListOut,
)
from .service import (
    add_shooting_day,
    delete_shooting_day,
    ensure_default_shooting_day,
    get_shooting_day,
    get_shooting_day_overview,
    list_shooting_days,
    update_shooting_day,
)

router = APIRouter(tags=["shooting_days"])


@router.get("/shooting-days", response_model=ShootingDaysListOut)
def api_list_shooting_days(
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    db: Database = Depends(get_db),
) -> ShootingDaysListOut:
    items, page = paginate(list_shooting_days(db), limit, offset)
    return ShootingDaysListOut(items=items, page=page)


@router.post("/shooting-days", response_model=ShootingDayOut, status_code=201)
def api_create_shooting_day(body: ShootingDayCreateIn, db: Database = Depends(get_db)) -> ShootingDayOut:
    return add_shooting_day(db, body.model_dump(exclude_unset=True))


@router.post("/shooting-days/default", response_model=ShootingDayOut)
def api_ensure_default(db: Database = Depends(get_db)) -> ShootingDayOut:
    return ensure_default_shooting_day(db)


@router.get("/shooting-days/{shooting_day_id}", response_model=ShootingDayOut)
def api_get_shooting_day(shooting_day_id: str, db: Database = Depends(get_db)) -> ShootingDayOut:
    d = get_shooting_day(db, shooting_day_id)
    if d is None:
        raise HTTPException(status_code=404, detail=f"Shooting day not found: {shooting_day_id}")
    return d


@router.patch("/shooting-days/{shooting_day_id}", response_model=ShootingDayOut)
def api_patch_shooting_day(shooting_day_id: str, body: ShootingDayPatchIn, db: Database = Depends(get_db)) -> ShootingDayOut:
    return update_shooting_day(db, shooting_day_id, body.model_dump(exclude_unset=True))


@router.delete("/shooting-days/{shooting_day_id}", response_model=ShootingDayOut)
def api_delete_shooting_day(shooting_day_id: str, db: Database = Depends(get_db)) -> ShootingDayOut:
    return delete_shooting_day(db, shooting_day_id)


@router.get("/shooting-days/{shooting_day_id}/scenes", response_model=List[SceneOut])
def api_shooting_day_scenes(shooting_day_id: str, db: Database = Depends(get_db)) -> List[SceneOut]:
    if get_shooting_day(db, shooting_day_id) is None:
        raise HTTPException(status_code=404, detail=f"Shooting day not found: {shooting_day_id}")
    return find_by_shooting_day(db, shooting_day_id)


@router.get("/shooting-days/{shooting_day_id}/overview", response_model=ShootingDayOverviewOut)
def api_shooting_day_overview(shooting_day_id: str, db: Database = Depends(get_db)) -> ShootingDayOverviewOut:
    return get_shooting_day_overview(db, shooting_day_id)
