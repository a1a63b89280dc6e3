from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from continuity.core.paging import PageOut
from continuity.core.registry import Document, Ref, RefList

SCENES = "scenes"


class Scene(Document):
    scene_number: int = Field(ge=0)
    shooting_day: Ref = None
    location: str = Field(default="", max_length=200)
    characters: RefList = Field(default_factory=list)
    costumes: RefList = Field(default_factory=list)
    time_of_day: str = Field(default="", max_length=100)


class SceneCreateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    scene_number: int
    shooting_day: Optional[str] = None
    location: Optional[str] = None
    characters: Optional[List[str]] = None
    costumes: Optional[List[str]] = None
    time_of_day: Optional[str] = None


class ScenePatchIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    scene_number: Optional[int] = None
    shooting_day: Optional[str] = None
    location: Optional[str] = None
    characters: Optional[List[str]] = None
    costumes: Optional[List[str]] = None
    time_of_day: Optional[str] = None


class SceneOut(BaseModel):
    id: str
    scene_number: int
    shooting_day: Optional[str] = None
    location: str = ""
    characters: List[str] = Field(default_factory=list)
    costumes: List[str] = Field(default_factory=list)
    time_of_day: str = ""
    created_at: str
    updated_at: str


class ScenesListOut(BaseModel):
    items: List[SceneOut]
    page: PageOut
