from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from continuity.core.database import Database
from continuity.core.paging import paginate
from continuity.deps import get_db
from continuity.modules.costumes.schemas import CostumeOut

from .schemas import SceneCreateIn, SceneOut, ScenePatchIn, ScenesListOut
from .service import (
    add_scene,
    assign_character_to_scene,
    assign_costume_to_scene,
    delete_scene,
    find_by_shooting_day,
    get_scene,
    list_costumes_for_scene,
    list_scenes,
    unassign_character_from_scene,
    unassign_costume_from_scene,
    update_scene,
)

router = APIRouter(tags=["scenes"])


@router.get("/scenes", response_model=ScenesListOut)
def api_list_scenes(
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    shooting_day: Optional[str] = Query(None, description="Only scenes planned on this shooting day"),
    db: Database = Depends(get_db),
) -> ScenesListOut:
    scenes = find_by_shooting_day(db, shooting_day) if shooting_day else list_scenes(db)
    items, page = paginate(scenes, limit, offset)
    return ScenesListOut(items=items, page=page)


@router.post("/scenes", response_model=SceneOut, status_code=201)
def api_create_scene(body: SceneCreateIn, db: Database = Depends(get_db)) -> SceneOut:
    return add_scene(db, body.model_dump(exclude_unset=True))


@router.get("/scenes/{scene_id}", response_model=SceneOut)
def api_get_scene(scene_id: str, db: Database = Depends(get_db)) -> SceneOut:
    s = get_scene(db, scene_id)
    if s is None:
        raise HTTPException(status_code=404, detail=f"Scene not found: {scene_id}")
    return s


@router.patch("/scenes/{scene_id}", response_model=SceneOut)
def api_patch_scene(scene_id: str, body: ScenePatchIn, db: Database = Depends(get_db)) -> SceneOut:
    return update_scene(db, scene_id, body.model_dump(exclude_unset=True))


@router.delete("/scenes/{scene_id}", response_model=SceneOut)
def api_delete_scene(scene_id: str, db: Database = Depends(get_db)) -> SceneOut:
    return delete_scene(db, scene_id)


@router.put("/scenes/{scene_id}/characters/{character_id}", response_model=SceneOut)
def api_assign_character(scene_id: str, character_id: str, db: Database = Depends(get_db)) -> SceneOut:
    return assign_character_to_scene(db, scene_id, character_id)


@router.delete("/scenes/{scene_id}/characters/{character_id}", response_model=SceneOut)
def api_unassign_character(scene_id: str, character_id: str, db: Database = Depends(get_db)) -> SceneOut:
    return unassign_character_from_scene(db, scene_id, character_id)


@router.get("/scenes/{scene_id}/costumes", response_model=List[CostumeOut])
def api_scene_costumes(scene_id: str, db: Database = Depends(get_db)) -> List[CostumeOut]:
    return list_costumes_for_scene(db, scene_id)


@router.put("/scenes/{scene_id}/costumes/{costume_id}", response_model=CostumeOut)
def api_assign_costume(scene_id: str, costume_id: str, db: Database = Depends(get_db)) -> CostumeOut:
    return assign_costume_to_scene(db, costume_id, scene_id)


@router.delete("/scenes/{scene_id}/costumes/{costume_id}", response_model=CostumeOut)
def api_unassign_costume(scene_id: str, costume_id: str, db: Database = Depends(get_db)) -> CostumeOut:
    return unassign_costume_from_scene(db, costume_id, scene_id)
