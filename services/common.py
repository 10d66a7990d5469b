"""Helpers shared by the category and book services."""
from __future__ import annotations

import math
from typing import Any, Mapping

from flask import current_app, has_app_context

from models.schemas import validate_payload
from models.schemas.common import ErrorKind, is_object_id
from services.exceptions import InvalidIdentifier, ValidationFailed


def strict_mode() -> bool:
    return has_app_context() and bool(current_app.config.get("STRICT_UNKNOWN_FIELDS", False))


def validated(schema_name: str, payload: Any, strict: bool | None = None) -> dict:
    """Run a named schema and raise ValidationFailed with every field failure."""
    result = validate_payload(schema_name, payload, strict=strict_mode() if strict is None else strict)
    if not result.ok:
        raise ValidationFailed(errors=result.errors)
    return result.data


def require_object_id(value: Any, param: str = "id") -> str:
    if not is_object_id(value):
        raise InvalidIdentifier(param, value)
    return value


def order_by_clause(sort: str | None, columns: Mapping[str, Any], default: str) -> list:
    """Translate ``"-price,title"`` into ORDER BY clauses from an allowlist."""
    order_by = []
    for item in (sort or default).split(","):
        item = item.strip()
        if not item:
            continue
        desc = item.startswith("-")
        key = item[1:] if desc else item
        column = columns.get(key)
        if column is None:
            allowed = ", ".join(columns)
            raise ValidationFailed(
                f"Unsupported sort field: {key}",
                errors=[{
                    "field": "sort",
                    "message": f"Unsupported sort field: {key}. Allowed: {allowed}",
                    "value": sort,
                    "type": ErrorKind.PATTERN_MISMATCH.value,
                }],
            )
        order_by.append(column.desc() if desc else column.asc())
    if not order_by:
        return order_by_clause(default, columns, default)
    return order_by


def like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"


def paginate(query, page: int, limit: int) -> tuple[list, dict]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    total_pages = math.ceil(total / limit) if total else 0
    return items, {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }
