from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from starlette.concurrency import run_in_threadpool

from continuity.core.database import Database
from continuity.core.paging import paginate
from continuity.deps import get_db

from .schemas import CostumeCreateIn, CostumeOut, CostumePatchIn, CostumesListOut, PhotoOut, PhotosListOut
from .service import (
    add_costume,
    add_photo,
    delete_costume,
    get_costume,
    get_photo,
    list_costumes,
    list_photos,
    remove_photo,
    update_costume,
)

router = APIRouter(tags=["costumes"])


@router.get("/costumes", response_model=CostumesListOut)
def api_list_costumes(
    limit: Optional[int] = Query(None, description="Max items to return (default 50, max 200)"),
    offset: Optional[int] = Query(None, description="Offset from start (default 0)"),
    character: Optional[str] = Query(None, description="Only costumes assigned to this character"),
    db: Database = Depends(get_db),
) -> CostumesListOut:
    items = list_costumes(db)
    if character:
        items = [c for c in items if c.get("character") == character]
    page_items, page = paginate(items, limit, offset)
    return CostumesListOut(items=page_items, page=page)


@router.post("/costumes", response_model=CostumeOut, status_code=201)
def api_create_costume(body: CostumeCreateIn, db: Database = Depends(get_db)) -> CostumeOut:
    return add_costume(db, body.model_dump(exclude_unset=True))


@router.get("/costumes/{costume_id}", response_model=CostumeOut)
def api_get_costume(costume_id: str, db: Database = Depends(get_db)) -> CostumeOut:
    c = get_costume(db, costume_id)
    if c is None:
        raise HTTPException(status_code=404, detail=f"Costume not found: {costume_id}")
    return c


@router.patch("/costumes/{costume_id}", response_model=CostumeOut)
def api_patch_costume(costume_id: str, body: CostumePatchIn, db: Database = Depends(get_db)) -> CostumeOut:
    return update_costume(db, costume_id, body.model_dump(exclude_unset=True))


@router.delete("/costumes/{costume_id}", response_model=CostumeOut)
def api_delete_costume(costume_id: str, db: Database = Depends(get_db)) -> CostumeOut:
    return delete_costume(db, costume_id)


@router.get("/costumes/{costume_id}/photos", response_model=PhotosListOut)
def api_list_photos(costume_id: str, db: Database = Depends(get_db)) -> PhotosListOut:
    if get_costume(db, costume_id) is None:
        raise HTTPException(status_code=404, detail=f"Costume not found: {costume_id}")
    return PhotosListOut(items=list_photos(db, costume_id))


@router.post("/costumes/{costume_id}/photos", response_model=PhotoOut, status_code=201)
async def api_add_photo(
    costume_id: str,
    request: Request,
    filename: Optional[str] = Query(None),
    db: Database = Depends(get_db),
) -> PhotoOut:
    # raw body upload; Content-Type header is the photo's content type
    data = await request.body()
    content_type = request.headers.get("content-type", "")
    return await run_in_threadpool(add_photo, db, costume_id, data, content_type, filename)


@router.get("/costumes/{costume_id}/photos/{photo_id}")
def api_get_photo(costume_id: str, photo_id: str, db: Database = Depends(get_db)) -> Response:
    meta, data = get_photo(db, costume_id, photo_id)
    return Response(content=data, media_type=meta["content_type"])


@router.delete("/costumes/{costume_id}/photos/{photo_id}", response_model=PhotoOut)
def api_remove_photo(costume_id: str, photo_id: str, db: Database = Depends(get_db)) -> PhotoOut:
    return remove_photo(db, costume_id, photo_id)
