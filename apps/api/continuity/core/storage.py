"""
Local filesystem storage for attachment blobs.

Defaults:
- STORAGE_ROOT: ./data/storage
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union


def _repo_root() -> Path:
    # apps/api/continuity/core/storage.py -> repo root = parents[4]
    return Path(__file__).resolve().parents[4]


def get_storage_root() -> Path:
    raw = os.getenv("STORAGE_ROOT", "./data/storage")
    p = Path(raw)
    return (_repo_root() / p).resolve() if not p.is_absolute() else p


def ensure_storage_root(root: Optional[Path] = None) -> Path:
    root = root or get_storage_root()
    root.mkdir(parents=True, exist_ok=True)
    return root


def safe_under_root(root: Path, candidate: Union[str, Path]) -> Optional[Path]:
    """Resolve `candidate` against `root`; None if it escapes the root."""
    p = Path(candidate)
    if not p.is_absolute():
        p = root / p
    p = p.resolve()
    root_resolved = root.resolve()
    if str(p).startswith(str(root_resolved) + os.sep) or p == root_resolved:
        return p
    return None


def storage_health(root: Optional[Path] = None) -> Dict[str, Any]:
    root = root or get_storage_root()
    try:
        ensure_storage_root(root)
        probe = root / ".probe_write"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink(missing_ok=True)
        return {"status": "ok", "kind": "local_fs", "root": str(root.as_posix())}
    except OSError as e:
        return {"status": "error", "kind": "local_fs", "root": str(root.as_posix()), "error": str(e)}
