"""
Book write rules and read queries.

Every write path keeps ``stock`` and ``status`` coherent: an explicit status
that contradicts the stock level is rejected, otherwise available and
out-of-stock follow the stock level while discontinued and upcoming are left
alone.
"""
from __future__ import annotations

import logging
from typing import Any, NamedTuple

from sqlalchemy import Integer, and_, case, func, literal, or_, update

from models import storage
from models.book import MAX_INTEGER, Book, BookStatus, StockOperation
from models.category import Category
from models.schemas.common import ErrorKind
from services.common import like_pattern, order_by_clause, paginate, require_object_id, validated
from services.exceptions import (
    DuplicateISBN,
    InactiveReference,
    InsufficientStock,
    InvalidReference,
    NotFound,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

AVAILABLE = BookStatus.AVAILABLE.value
OUT_OF_STOCK = BookStatus.OUT_OF_STOCK.value

# Sorting allowlist: API field -> SQLAlchemy column
SORT_COLUMNS = {
    "title": Book.title,
    "author": Book.author,
    "price": Book.price,
    "publishedDate": Book.published_date,
    "createdAt": Book.created_at,
    "updatedAt": Book.updated_at,
    "stock": Book.stock,
    "averageRating": Book.average_rating,
    "pages": Book.pages,
}

FEATURED_LIMIT = 10

# Filter params echoed back in list responses: attribute -> query key
FILTER_KEYS = {
    "search": "search",
    "category": "category",
    "status": "status",
    "min_price": "minPrice",
    "max_price": "maxPrice",
    "language": "language",
    "is_featured": "isFeatured",
}


class StockChange(NamedTuple):
    book: Book
    operation: str
    quantity: int
    previous_stock: int


def normalize_title(title: str) -> str:
    return title[:1].upper() + title[1:]


def normalize_author(author: str) -> str:
    return " ".join(word.capitalize() for word in author.split())


def normalize_book_fields(data: dict) -> dict:
    """Apply write-time normalization to whichever of title/author are present."""
    if "title" in data:
        data["title"] = normalize_title(data["title"])
    if "author" in data:
        data["author"] = normalize_author(data["author"])
    return data


def derive_status(stock: int, status: str) -> str:
    if status == AVAILABLE and stock == 0:
        return OUT_OF_STOCK
    if status == OUT_OF_STOCK and stock > 0:
        return AVAILABLE
    return status


def reconcile_status(stock: int, status: str, explicit: bool) -> str:
    """Status to persist for a book ending up with ``stock`` units."""
    if not explicit:
        return derive_status(stock, status)

    if status == AVAILABLE and stock == 0:
        message = "A book with zero stock cannot be marked available."
    elif status == OUT_OF_STOCK and stock > 0:
        message = "A book with stock cannot be marked out-of-stock."
    else:
        return status
    raise ValidationFailed(errors=[{
        "field": "status",
        "message": message,
        "value": status,
        "type": ErrorKind.STATUS_CONFLICT.value,
    }])


def resolve_category(category_id: str) -> Category:
    category = storage.get(Category, category_id)
    if category is None:
        raise InvalidReference(field="category", value=category_id)
    if not category.is_active:
        raise InactiveReference(field="category", value=category_id)
    return category


def isbn_taken(isbn: str, exclude_id: str | None = None) -> bool:
    q = storage.query(Book).filter(Book.isbn == isbn)
    if exclude_id:
        q = q.filter(Book.id != exclude_id)
    return storage.get_session().query(q.exists()).scalar()


def get_book(book_id: Any) -> Book:
    require_object_id(book_id)
    book = storage.get(Book, book_id)
    if book is None:
        raise NotFound("Book not found", extra={"id": book_id})
    return book


def create_book(payload: Any) -> Book:
    data = validated("book-create", payload)
    category = resolve_category(data.pop("category_id"))
    if isbn_taken(data["isbn"]):
        raise DuplicateISBN(field="isbn", value=data["isbn"])

    normalize_book_fields(data)
    explicit = "status" in data
    data["status"] = reconcile_status(data["stock"], data.pop("status", AVAILABLE), explicit)

    book = Book(category=category, **data)
    book.save()
    logger.info("Created book %s (isbn %s) in category %s", book.id, book.isbn, category.id)
    return book


def update_book(book_id: Any, payload: Any) -> Book:
    book = get_book(book_id)
    data = validated("book-update", payload)

    category = None
    category_id = data.pop("category_id", None)
    if category_id is not None and category_id != book.category_id:
        category = resolve_category(category_id)

    if "isbn" in data and data["isbn"] != book.isbn and isbn_taken(data["isbn"], exclude_id=book.id):
        raise DuplicateISBN(field="isbn", value=data["isbn"])

    if category is not None:
        book.category = category
    normalize_book_fields(data)
    stock = data.get("stock", book.stock)
    explicit = "status" in data
    data["status"] = reconcile_status(stock, data.get("status", book.status), explicit)

    for key, value in data.items():
        setattr(book, key, value)
    book.save()
    logger.info("Updated book %s: %s", book.id, sorted(data))
    return book


def delete_book(book_id: Any) -> dict:
    book = get_book(book_id)
    summary = {"id": book.id, "title": book.title, "author": book.author}
    book.delete()
    logger.info("Deleted book %s", summary["id"])
    return summary


def update_stock(book_id: Any, payload: Any) -> StockChange:
    """Apply add/reduce/set as one conditional UPDATE so reduces cannot overdraw."""
    book = get_book(book_id)
    data = validated("book-stock-op", payload)
    operation, quantity = data["operation"], data["quantity"]
    previous = book.stock

    guards = [Book.id == book.id]
    if operation == StockOperation.ADD.value:
        new_stock = Book.stock + quantity
        guards.append(Book.stock <= MAX_INTEGER - quantity)
    elif operation == StockOperation.REDUCE.value:
        new_stock = Book.stock - quantity
        guards.append(Book.stock >= quantity)
    else:
        new_stock = literal(quantity, Integer)

    new_status = case(
        (and_(Book.status == AVAILABLE, new_stock == 0), OUT_OF_STOCK),
        (and_(Book.status == OUT_OF_STOCK, new_stock > 0), AVAILABLE),
        else_=Book.status,
    )
    # status is assigned first: MySQL evaluates SET clauses left to right, so
    # the CASE must still see the old stock.
    stmt = (
        update(Book)
        .where(*guards)
        .ordered_values((Book.status, new_status), (Book.stock, new_stock))
        .execution_options(synchronize_session=False)
    )
    result = storage.execute(stmt)
    if result.rowcount == 0:
        storage.rollback()
        storage.refresh(book)
        if operation == StockOperation.ADD.value:
            raise ValidationFailed(errors=[{
                "field": "quantity",
                "message": f"Stock cannot exceed {MAX_INTEGER}. Current stock: {book.stock}",
                "value": quantity,
                "type": ErrorKind.RANGE_VIOLATION.value,
            }])
        raise InsufficientStock(
            f"Insufficient stock. Available: {book.stock}, requested: {quantity}",
            field="quantity",
            value=quantity,
            extra={"currentStock": book.stock},
        )
    storage.save()
    storage.refresh(book)
    logger.info("Stock %s %d on book %s: %d -> %d", operation, quantity, book.id, previous, book.stock)
    return StockChange(book, operation, quantity, previous)


def _search_clause(term: str):
    pattern = like_pattern(term)
    return or_(
        func.lower(Book.title).like(pattern, escape="\\"),
        func.lower(Book.author).like(pattern, escape="\\"),
        func.lower(Book.description).like(pattern, escape="\\"),
    )


def _apply_filters(query, params: dict):
    if params.get("search"):
        query = query.filter(_search_clause(params["search"]))
    if params.get("category"):
        query = query.filter(Book.category_id == params["category"])
    if params.get("status"):
        query = query.filter(Book.status == params["status"])
    if params.get("language"):
        query = query.filter(Book.language == params["language"])
    if params.get("is_featured") is not None:
        query = query.filter(Book.is_featured.is_(params["is_featured"]))
    if params.get("min_price") is not None:
        query = query.filter(Book.price >= params["min_price"])
    if params.get("max_price") is not None:
        query = query.filter(Book.price <= params["max_price"])
    return query


def list_books(args: Any) -> tuple[list[Book], dict, dict]:
    params = validated("list-query", args)
    query = _apply_filters(storage.query(Book), params)
    query = query.order_by(*order_by_clause(params.get("sort"), SORT_COLUMNS, "-createdAt"))
    books, pagination = paginate(query, params["page"], params["limit"])
    filters = {key: params[attr] for attr, key in FILTER_KEYS.items() if params.get(attr) is not None}
    return books, pagination, filters


def available_books() -> list[Book]:
    return (
        storage.query(Book)
        .filter(Book.status == AVAILABLE, Book.stock > 0)
        .order_by(Book.title.asc())
        .all()
    )


def featured_books() -> list[Book]:
    return (
        storage.query(Book)
        .filter(Book.is_featured.is_(True))
        .order_by(Book.average_rating.desc(), Book.review_count.desc())
        .limit(FEATURED_LIMIT)
        .all()
    )


def search_books(term: Any, args: Any) -> tuple[str, list[Book]]:
    params = validated("book-search-query", {**dict(args or {}), "term": term})
    params["search"] = params.pop("term")
    books = _apply_filters(storage.query(Book), params).order_by(Book.title.asc()).all()
    return params["search"], books


def books_by_category(category_id: Any) -> tuple[Category, list[Book]]:
    require_object_id(category_id)
    category = storage.get(Category, category_id)
    if category is None:
        raise NotFound("Category not found", extra={"id": category_id})
    books = (
        storage.query(Book)
        .filter(Book.category_id == category.id)
        .order_by(Book.title.asc())
        .all()
    )
    return category, books


def book_stats() -> dict:
    session = storage.get_session()
    total = storage.count(Book)
    average_price, inventory_value = session.query(
        func.avg(Book.price), func.sum(Book.price * Book.stock)
    ).one()
    top_rated = (
        storage.query(Book)
        .filter(Book.review_count > 0)
        .order_by(Book.average_rating.desc(), Book.review_count.desc())
        .limit(5)
        .all()
    )
    distribution = (
        session.query(
            Category.id,
            Category.name,
            func.count(Book.id),
            func.sum(Book.price * Book.stock),
        )
        .select_from(Book)
        .join(Category, Book.category_id == Category.id)
        .group_by(Category.id, Category.name)
        .order_by(func.count(Book.id).desc(), Category.name.asc())
        .all()
    )
    return {
        "totals": {
            "total": total,
            "available": storage.count(Book, Book.status == AVAILABLE),
            "outOfStock": storage.count(Book, Book.status == OUT_OF_STOCK),
            "featured": storage.count(Book, Book.is_featured.is_(True)),
        },
        "financial": {
            "averagePrice": round(float(average_price or 0), 2),
            "totalInventoryValue": round(float(inventory_value or 0), 2),
        },
        "topRated": top_rated,
        "categoryDistribution": [
            {
                "categoryId": cat_id,
                "categoryName": name,
                "count": count,
                "totalValue": round(float(value or 0), 2),
            }
            for cat_id, name, count, value in distribution
        ],
    }
