from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from continuity.core.database import Database
from continuity.core.paging import paginate
from continuity.deps import get_db
from continuity.modules.costumes.schemas import CostumeOut
from continuity.modules.scenes.schemas import SceneOut
from continuity.modules.scenes.service import list_scenes_for_character

from .schemas import CharacterCreateIn, CharacterOut, CharacterPatchIn, CharactersListOut
from .service import (
    add_character,
    assign_costume_to_character,
    delete_character,
    get_character,
    get_costumes_by_character_id,
    list_characters,
    unassign_costume_from_character,
    update_character,
)

router = APIRouter(tags=["characters"])


def _require_character(db: Database, character_id: str) -> dict:
    c = get_character(db, character_id)
    if c is None:
        raise HTTPException(status_code=404, detail=f"Character not found: {character_id}")
    return c


@router.get("/characters", response_model=CharactersListOut)
def api_list_characters(
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    db: Database = Depends(get_db),
) -> CharactersListOut:
    items, page = paginate(list_characters(db), limit, offset)
    return CharactersListOut(items=items, page=page)


@router.post("/characters", response_model=CharacterOut, status_code=201)
def api_create_character(body: CharacterCreateIn, db: Database = Depends(get_db)) -> CharacterOut:
    return add_character(db, body.model_dump(exclude_unset=True))


@router.get("/characters/{character_id}", response_model=CharacterOut)
def api_get_character(character_id: str, db: Database = Depends(get_db)) -> CharacterOut:
    return _require_character(db, character_id)


@router.patch("/characters/{character_id}", response_model=CharacterOut)
def api_patch_character(character_id: str, body: CharacterPatchIn, db: Database = Depends(get_db)) -> CharacterOut:
    return update_character(db, character_id, body.model_dump(exclude_unset=True))


@router.delete("/characters/{character_id}", response_model=CharacterOut)
def api_delete_character(character_id: str, db: Database = Depends(get_db)) -> CharacterOut:
    return delete_character(db, character_id)


@router.get("/characters/{character_id}/costumes", response_model=List[CostumeOut])
def api_character_costumes(character_id: str, db: Database = Depends(get_db)) -> List[CostumeOut]:
    _require_character(db, character_id)
    return get_costumes_by_character_id(db, character_id)


@router.put("/characters/{character_id}/costumes/{costume_id}", response_model=CostumeOut)
def api_assign_costume(character_id: str, costume_id: str, db: Database = Depends(get_db)) -> CostumeOut:
    return assign_costume_to_character(db, costume_id, character_id)


@router.delete("/characters/{character_id}/costumes/{costume_id}", response_model=CostumeOut)
def api_unassign_costume(character_id: str, costume_id: str, db: Database = Depends(get_db)) -> CostumeOut:
    return unassign_costume_from_character(db, costume_id, character_id)


@router.get("/characters/{character_id}/scenes", response_model=List[SceneOut])
def api_character_scenes(character_id: str, db: Database = Depends(get_db)) -> List[SceneOut]:
    _require_character(db, character_id)
    return list_scenes_for_character(db, character_id)
