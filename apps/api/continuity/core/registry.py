"""
Schema registry.

Each collection is described by a pydantic model deriving from `Document`.
Validation reports every violation pydantic finds, not just the first one.
"""
from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from typing_extensions import Annotated

from .errors import SchemaError, ValidationError

PRIMARY_KEY_MAX_LENGTH = 100
IMMUTABLE_FIELDS = ("id", "created_at")


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


def unique_ids(values: List[str]) -> List[str]:
    """Drop repeated ids, keeping the first occurrence."""
    seen = set()
    out: List[str] = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


# single reference: id of a document in another collection, or None ("" is None)
Ref = Annotated[Optional[Annotated[str, Field(max_length=PRIMARY_KEY_MAX_LENGTH)]], BeforeValidator(_blank_to_none)]
# reference array, de-duplicated on write
RefList = Annotated[List[Annotated[str, Field(min_length=1, max_length=PRIMARY_KEY_MAX_LENGTH)]], AfterValidator(unique_ids)]


class Document(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, max_length=PRIMARY_KEY_MAX_LENGTH)
    created_at: str
    updated_at: str

    @field_validator("created_at", "updated_at")
    @classmethod
    def _iso_timestamp(cls, v: str) -> str:
        try:
            datetime.fromisoformat(v.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("must be an ISO-8601 timestamp")
        return v


def _violations(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for e in exc.errors():
        field = ".".join(str(p) for p in e.get("loc", ())) or "__root__"
        out.append({"field": field, "message": e.get("msg", ""), "type": e.get("type", "")})
    return out


def _primary_key_max_length(model: Type[Document]) -> Optional[int]:
    f = model.model_fields.get("id")
    if f is None or f.annotation is not str:
        return None
    for m in f.metadata:
        n = getattr(m, "max_length", None)
        if n is not None:
            return int(n)
    return None


def _comparable_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    s = dict(model.model_json_schema())
    s.pop("title", None)
    return s


class SchemaRegistry:
    def __init__(self) -> None:
        self._models: Dict[str, Type[Document]] = {}
        self._lock = threading.Lock()

    def register(self, collection: str, model: Type[Document]) -> None:
        if not isinstance(collection, str) or not collection.strip():
            raise SchemaError("collection name must be a non-empty string")
        if not (isinstance(model, type) and issubclass(model, Document)):
            raise SchemaError(f"{collection}: schema must derive from Document", {"collection": collection})

        pk_len = _primary_key_max_length(model)
        if pk_len is None or pk_len > PRIMARY_KEY_MAX_LENGTH:
            raise SchemaError(
                f"{collection}: primary key must be a string of at most {PRIMARY_KEY_MAX_LENGTH} chars",
                {"collection": collection, "max_length": pk_len},
            )

        with self._lock:
            existing = self._models.get(collection)
            if existing is not None:
                if existing is model or _comparable_schema(existing) == _comparable_schema(model):
                    return
                raise SchemaError(
                    f"{collection}: already registered with an incompatible schema",
                    {"collection": collection, "existing": existing.__name__, "new": model.__name__},
                )
            self._models[collection] = model

    def get(self, collection: str) -> Type[Document]:
        model = self._models.get(collection)
        if model is None:
            raise SchemaError(f"unknown collection: {collection}", {"collection": collection})
        return model

    def names(self) -> List[str]:
        return list(self._models.keys())

    def __contains__(self, collection: object) -> bool:
        return collection in self._models

    def validate(self, collection: str, document: Mapping[str, Any]) -> Dict[str, Any]:
        model = self.get(collection)
        try:
            return model.model_validate(dict(document)).model_dump()
        except PydanticValidationError as e:
            raise ValidationError(collection, _violations(e)) from e

    def patch_violations(self, collection: str, patch: Mapping[str, Any], current: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Checks only what a partial patch can get wrong on its own."""
        model = self.get(collection)
        errors: List[Dict[str, Any]] = []
        for key, value in patch.items():
            if key not in model.model_fields:
                errors.append({"field": key, "message": "Extra inputs are not permitted", "type": "extra_forbidden"})
            elif key in IMMUTABLE_FIELDS and value != current.get(key):
                errors.append({"field": key, "message": "field is immutable", "type": "immutable"})
        return errors

    def validate_update(self, collection: str, patch: Mapping[str, Any], current: Mapping[str, Any], merged: Mapping[str, Any]) -> Dict[str, Any]:
        errors = self.patch_violations(collection, patch, current)
        clean = {k: v for k, v in merged.items() if k in self.get(collection).model_fields}
        try:
            doc = self.validate(collection, clean)
        except ValidationError as e:
            raise ValidationError(collection, errors + e.errors) from e
        if errors:
            raise ValidationError(collection, errors)
        return doc
