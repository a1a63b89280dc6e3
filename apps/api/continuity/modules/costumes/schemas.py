from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from continuity.core.paging import PageOut
from continuity.core.registry import Document, Ref, RefList

COSTUMES = "costumes"


class Costume(Document):
    name: str = Field(default="New Costume", max_length=200)
    character: Ref = None
    scenes: RefList = Field(default_factory=list)
    notes: str = Field(default="", max_length=10000)


class CostumeCreateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    name: Optional[str] = None
    character: Optional[str] = None
    scenes: Optional[List[str]] = None
    notes: Optional[str] = None


class CostumePatchIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    character: Optional[str] = None
    scenes: Optional[List[str]] = None
    notes: Optional[str] = None


class CostumeOut(BaseModel):
    id: str
    name: str
    character: Optional[str] = None
    scenes: List[str] = Field(default_factory=list)
    notes: str = ""
    created_at: str
    updated_at: str


class CostumesListOut(BaseModel):
    items: List[CostumeOut]
    page: PageOut


class PhotoOut(BaseModel):
    id: str
    parent_id: str
    filename: Optional[str] = None
    content_type: str
    size: int
    sha256: str
    created_at: str
    url: str


class PhotosListOut(BaseModel):
    items: List[PhotoOut]
