from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from continuity.core.paging import PageOut
from continuity.core.registry import Document

CHARACTERS = "characters"


class Character(Document):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=10000)
    actor: str = Field(default="", max_length=200)
    notes: str = Field(default="", max_length=10000)


class CharacterCreateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    name: str = Field(min_length=1)
    description: Optional[str] = None
    actor: Optional[str] = None
    notes: Optional[str] = None


class CharacterPatchIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    actor: Optional[str] = None
    notes: Optional[str] = None


class CharacterOut(BaseModel):
    id: str
    name: str
    description: str = ""
    actor: str = ""
    notes: str = ""
    created_at: str
    updated_at: str


class CharactersListOut(BaseModel):
    items: List[CharacterOut]
    page: PageOut
