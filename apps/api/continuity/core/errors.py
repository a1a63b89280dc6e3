"""
Error taxonomy shared by the store, the attachment manager and the HTTP layer.

Every error carries a stable `error` code (used in the HTTP envelope) and a
`details` dict.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class ContinuityError(Exception):
    error = "internal_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}


class ValidationError(ContinuityError):
    """Schema violation. `errors` lists every violated constraint."""

    error = "validation_error"
    status_code = 422

    def __init__(self, collection: str, errors: List[Dict[str, Any]]) -> None:
        fields = ", ".join(sorted({str(e.get("field", "")) for e in errors}))
        super().__init__(
            f"{collection}: {len(errors)} validation error(s) ({fields})",
            {"collection": collection, "errors": errors},
        )
        self.collection = collection
        self.errors = errors


class NotFoundError(ContinuityError):
    error = "not_found"
    status_code = 404

    def __init__(self, collection: str, doc_id: str, what: str = "document", **extra: Any) -> None:
        super().__init__(
            f"{what} not found: {collection}/{doc_id}",
            {"collection": collection, "id": doc_id, **extra},
        )
        self.collection = collection
        self.doc_id = doc_id


class DuplicateKeyError(ContinuityError):
    error = "conflict"
    status_code = 409

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(
            f"duplicate id in {collection}: {doc_id}",
            {"collection": collection, "id": doc_id},
        )
        self.collection = collection
        self.doc_id = doc_id


class SchemaError(ContinuityError):
    """Programmer error: bad schema registration or unknown collection."""

    error = "schema_error"
    status_code = 500
