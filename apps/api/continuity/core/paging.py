from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

LIMIT_DEFAULT = 50
LIMIT_MAX = 200


class PageOut(BaseModel):
    offset: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    has_more: bool


def clamp_limit(raw: Optional[int]) -> int:
    # lock: default=50, max=200
    if raw is None:
        return LIMIT_DEFAULT
    try:
        v = int(raw)
    except (TypeError, ValueError):
        return LIMIT_DEFAULT
    if v < 1:
        v = 1
    if v > LIMIT_MAX:
        v = LIMIT_MAX
    return v


def clamp_offset(raw: Optional[int]) -> int:
    if raw is None:
        return 0
    try:
        v = int(raw)
    except (TypeError, ValueError):
        return 0
    return max(v, 0)


def paginate(items: Sequence[Any], limit: Optional[int], offset: Optional[int]) -> Tuple[List[Any], PageOut]:
    lim = clamp_limit(limit)
    off = clamp_offset(offset)
    total = len(items)
    return list(items[off : off + lim]), PageOut(offset=off, limit=lim, total=total, has_more=(off + lim) < total)
