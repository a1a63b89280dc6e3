from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


class SyncOut(BaseModel):
    status: str
    enabled: bool
    pushed: int = 0
    pulled: int = 0
    details: Dict[str, Any] = Field(default_factory=dict)
