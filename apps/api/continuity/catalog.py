"""
The production-management collections and the references between them.

Owning sides (the array lives on one document only, the reverse is computed):
- costume -> character      costumes.character
- costume <-> scene         costumes.scenes
- character <-> scene       scenes.characters
- scene -> shooting day     scenes.shooting_day
scenes.costumes is kept as a plain reference so costume deletes clean it too.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Type, Union

from continuity.core.database import Database
from continuity.core.references import Reference
from continuity.core.registry import Document
from continuity.modules.characters.schemas import CHARACTERS, Character
from continuity.modules.costumes.schemas import COSTUMES, Costume
from continuity.modules.scenes.schemas import SCENES, Scene
from continuity.modules.shooting_days.schemas import SHOOTING_DAYS, ShootingDay

SCHEMAS: Dict[str, Type[Document]] = {
    COSTUMES: Costume,
    CHARACTERS: Character,
    SCENES: Scene,
    SHOOTING_DAYS: ShootingDay,
}

REFERENCES: List[Reference] = [
    Reference(COSTUMES, "character", CHARACTERS),
    Reference(COSTUMES, "scenes", SCENES, many=True),
    Reference(SCENES, "shooting_day", SHOOTING_DAYS),
    Reference(SCENES, "characters", CHARACTERS, many=True),
    Reference(SCENES, "costumes", COSTUMES, many=True),
]


def create_database(url: Optional[str] = None, storage_root: Union[str, Path, None] = None, **kwargs) -> Database:
    """Not initialized; call `initialize()` (or use it as a context manager)."""
    return Database(url=url, storage_root=storage_root, schemas=SCHEMAS, references=REFERENCES, **kwargs)
