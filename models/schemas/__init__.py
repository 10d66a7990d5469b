"""
Named request schemas and the single entry point that applies them.

``validate_payload`` never raises for bad input: it returns either the
sanitized payload or every field failure found, so callers decide how to
report them.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple

from marshmallow import EXCLUDE, RAISE, ValidationError

from models.schemas.book import BookCreateSchema, BookUpdateSchema, StockOperationSchema
from models.schemas.category import CategoryCreateSchema, CategoryUpdateSchema
from models.schemas.common import kind_of
from models.schemas.query import BookSearchQuerySchema, CategoryListQuerySchema, ListQuerySchema

SCHEMAS = {
    "category-create": CategoryCreateSchema,
    "category-update": CategoryUpdateSchema,
    "book-create": BookCreateSchema,
    "book-update": BookUpdateSchema,
    "book-stock-op": StockOperationSchema,
    "list-query": ListQuerySchema,
    "category-list-query": CategoryListQuerySchema,
    "book-search-query": BookSearchQuerySchema,
}

BODY_FIELD = "body"


class ShapeResult(NamedTuple):
    data: dict | None
    errors: list

    @property
    def ok(self) -> bool:
        return not self.errors


def field_errors(messages: Any, payload: Any, prefix: str = "") -> list[dict]:
    """Flatten marshmallow's error mapping into ``{field, message, value, type}`` records."""
    found = []
    if not isinstance(messages, Mapping):
        messages = {BODY_FIELD: messages}
    for key, value in messages.items():
        field = BODY_FIELD if key == "_schema" else f"{prefix}{key}"
        if isinstance(value, Mapping):
            nested = payload.get(key) if isinstance(payload, Mapping) else None
            found.extend(field_errors(value, nested, prefix=f"{field}."))
            continue
        offending = payload.get(key) if isinstance(payload, Mapping) else None
        for message in value if isinstance(value, list) else [value]:
            found.append({
                "field": field,
                "message": str(message),
                "value": offending,
                "type": kind_of(message).value,
            })
    return found


def validate_payload(name: str, payload: Any, *, strict: bool = False) -> ShapeResult:
    """Apply the schema registered under ``name``.

    With ``strict`` unknown keys are reported as UnknownField failures,
    otherwise they are stripped from the result.
    """
    schema = SCHEMAS[name]()
    if payload is None:
        payload = {}
    try:
        data = schema.load(payload, unknown=RAISE if strict else EXCLUDE)
    except ValidationError as err:
        return ShapeResult(None, field_errors(err.messages, payload))
    return ShapeResult(data, [])
