"""
Category write rules and read queries.

Names are stored capitalized ("Science fiction"), so a case-insensitive
match and the unique index on ``categories.name`` agree with each other.
"""
from __future__ import annotations

import logging
from typing import Any, NamedTuple

from sqlalchemy import func, or_

from models import storage
from models.book import Book
from models.category import Category
from services.common import like_pattern, order_by_clause, paginate, require_object_id, validated
from services.exceptions import DuplicateName, NotFound

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Category.name,
    "createdAt": Category.created_at,
    "updatedAt": Category.updated_at,
}


class DeleteOutcome(NamedTuple):
    category: Category
    soft: bool
    books_count: int


def normalize_category_name(name: str) -> str:
    """First letter upper-case, the rest lower-case."""
    return name.capitalize()


def name_taken(name: str, exclude_id: str | None = None) -> bool:
    q = storage.query(Category).filter(func.lower(Category.name) == name.lower())
    if exclude_id:
        q = q.filter(Category.id != exclude_id)
    return storage.get_session().query(q.exists()).scalar()


def get_category(category_id: Any) -> Category:
    require_object_id(category_id)
    category = storage.get(Category, category_id, fresh=True)
    if category is None:
        raise NotFound("Category not found", extra={"id": category_id})
    return category


def create_category(payload: Any) -> Category:
    data = validated("category-create", payload)
    data["name"] = normalize_category_name(data["name"])
    if name_taken(data["name"]):
        raise DuplicateName(field="name", value=data["name"])

    category = Category(**data)
    category.save()
    logger.info("Created category %s (%s)", category.id, category.name)
    return storage.get(Category, category.id, fresh=True)


def update_category(category_id: Any, payload: Any) -> Category:
    require_object_id(category_id)
    data = validated("category-update", payload)
    category = get_category(category_id)

    if "name" in data:
        data["name"] = normalize_category_name(data["name"])
        if data["name"] != category.name and name_taken(data["name"], exclude_id=category.id):
            raise DuplicateName(field="name", value=data["name"])

    for key, value in data.items():
        setattr(category, key, value)
    category.save()
    logger.info("Updated category %s: %s", category.id, sorted(data))
    return storage.get(Category, category.id, fresh=True)


def delete_category(category_id: Any) -> DeleteOutcome:
    """Hard delete when no book points at the category, otherwise deactivate it."""
    category = get_category(category_id)
    books_count = storage.count(Book, Book.category_id == category.id)
    if books_count > 0:
        category.deactivate()
        logger.info("Deactivated category %s, still referenced by %d books", category.id, books_count)
        return DeleteOutcome(category, True, books_count)

    category.delete()
    logger.info("Deleted category %s", category.id)
    return DeleteOutcome(category, False, 0)


def toggle_category_status(category_id: Any) -> Category:
    category = get_category(category_id)
    category.toggle_active()
    logger.info("Category %s is now %s", category.id, "active" if category.is_active else "inactive")
    return category


def list_categories(args: Any) -> tuple[list[Category], dict]:
    params = validated("category-list-query", args)
    query = storage.query(Category).populate_existing()

    if params.get("is_active") is not None:
        query = query.filter(Category.is_active.is_(params["is_active"]))
    if params.get("search"):
        pattern = like_pattern(params["search"])
        query = query.filter(or_(
            func.lower(Category.name).like(pattern, escape="\\"),
            func.lower(Category.description).like(pattern, escape="\\"),
        ))

    query = query.order_by(*order_by_clause(params.get("sort"), SORT_COLUMNS, "name"))
    return paginate(query, params["page"], params["limit"])


def active_categories() -> list[Category]:
    return (
        storage.query(Category)
        .populate_existing()
        .filter(Category.is_active.is_(True))
        .order_by(Category.name.asc())
        .all()
    )


def category_stats() -> dict:
    total = storage.count(Category)
    active = storage.count(Category, Category.is_active.is_(True))
    top = (
        storage.query(Category)
        .populate_existing()
        .order_by(Category.book_count.desc(), Category.name.asc())
        .limit(5)
        .all()
    )
    return {
        "totals": {"total": total, "active": active, "inactive": total - active},
        "topCategories": [
            {"id": c.id, "name": c.name, "isActive": c.is_active, "bookCount": c.book_count}
            for c in top
        ],
    }
