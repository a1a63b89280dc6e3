from __future__ import annotations

from datetime import date as _date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from continuity.core.paging import PageOut
from continuity.core.registry import Document

SHOOTING_DAYS = "shootingdays"

# lock: Planned|Confirmed|Pending|Completed|Cancelled
ShootingDayStatus = Literal["Planned", "Confirmed", "Pending", "Completed", "Cancelled"]
DEFAULT_STATUS = "Planned"


class ShootingDay(Document):
    date: str
    location: str = Field(default="", max_length=200)
    status: ShootingDayStatus = DEFAULT_STATUS

    @field_validator("date")
    @classmethod
    def _iso_date(cls, v: str) -> str:
        try:
            _date.fromisoformat(v)
        except ValueError:
            raise ValueError("must be an ISO date (YYYY-MM-DD)")
        return v


class ShootingDayCreateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    date: str
    location: Optional[str] = None
    status: Optional[ShootingDayStatus] = None


class ShootingDayPatchIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: Optional[str] = None
    location: Optional[str] = None
    status: Optional[ShootingDayStatus] = None


class ShootingDayOut(BaseModel):
    id: str
    date: str
    location: str = ""
    status: ShootingDayStatus = DEFAULT_STATUS
    created_at: str
    updated_at: str


class ShootingDaysListOut(BaseModel):
    items: List[ShootingDayOut]
    page: PageOut


class OverviewCharacterOut(BaseModel):
    character: dict
    costumes: List[dict] = Field(default_factory=list)


class ShootingDayOverviewOut(BaseModel):
    shooting_day: ShootingDayOut
    scenes: List[dict] = Field(default_factory=list)
    characters: List[OverviewCharacterOut] = Field(default_factory=list)
