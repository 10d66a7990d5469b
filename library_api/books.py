from __future__ import annotations

from flask import Blueprint

from library_api.responses import success_response
from models.schemas.book import BookOutSchema, TopRatedBookSchema
from models.schemas.category import CategorySummarySchema
from services import books as book_service
from utils.decorators import admin_required, validate_object_id
from utils.http import json_payload, query_args

bp = Blueprint("books", __name__)

book_out_schema = BookOutSchema()
books_out_schema = BookOutSchema(many=True)
top_rated_schema = TopRatedBookSchema(many=True)
category_summary_schema = CategorySummarySchema(only=("id", "name", "description"))


@bp.get("/books")
def list_books():
    """
    List books (paginated, filterable)
    ---
    tags: [Books]
    parameters:
      - { in: query, name: page, type: integer, minimum: 1, default: 1 }
      - { in: query, name: limit, type: integer, minimum: 1, maximum: 100, default: 10 }
      - { in: query, name: sort, type: string, description: "Comma separated, '-' prefix for descending. Default -createdAt" }
      - { in: query, name: search, type: string, description: Matches title, author or description }
      - { in: query, name: category, type: string }
      - { in: query, name: status, type: string, enum: [available, out-of-stock, discontinued, upcoming] }
      - { in: query, name: minPrice, type: number }
      - { in: query, name: maxPrice, type: number }
      - { in: query, name: language, type: string }
      - { in: query, name: isFeatured, type: boolean }
    responses:
      200: { description: Page of books with pagination and the filters applied }
      400: { description: Invalid query parameters }
    """
    books, pagination, filters = book_service.list_books(query_args())
    return success_response(
        "Books retrieved successfully",
        books_out_schema.dump(books),
        pagination=pagination,
        filters=filters,
    )


@bp.get("/books/available")
def list_available_books():
    """
    Books that can be ordered right now
    ---
    tags: [Books]
    responses:
      200: { description: Available books with stock }
    """
    books = book_service.available_books()
    return success_response("Available books retrieved successfully", books_out_schema.dump(books), count=len(books))


@bp.get("/books/featured")
def list_featured_books():
    """
    Featured books, best rated first
    ---
    tags: [Books]
    responses:
      200: { description: Up to ten featured books }
    """
    books = book_service.featured_books()
    return success_response("Featured books retrieved successfully", books_out_schema.dump(books), count=len(books))


@bp.get("/books/stats")
@admin_required()
def book_stats():
    """
    Catalog statistics
    ---
    tags: [Books]
    responses:
      200: { description: Totals, financial figures, top rated and per-category distribution }
      401: { description: Not signed in }
      403: { description: Not an administrator }
    """
    stats = book_service.book_stats()
    stats["topRated"] = top_rated_schema.dump(stats["topRated"])
    return success_response("Book statistics retrieved successfully", stats)


@bp.get("/books/search/<term>")
def search_books(term):
    """
    Search books by title, author or description
    ---
    tags: [Books]
    parameters:
      - { in: path, name: term, type: string, required: true }
      - { in: query, name: category, type: string }
      - { in: query, name: minPrice, type: number }
      - { in: query, name: maxPrice, type: number }
      - { in: query, name: language, type: string }
    responses:
      200: { description: Matching books ordered by title }
      400: { description: Invalid search parameters }
    """
    search_term, books = book_service.search_books(term, query_args())
    return success_response(
        f"Found {len(books)} books matching '{search_term}'",
        books_out_schema.dump(books),
        searchTerm=search_term,
        count=len(books),
    )


@bp.get("/books/category/<category_id>")
@validate_object_id("category_id")
def books_by_category(category_id):
    """
    Books in a category
    ---
    tags: [Books]
    parameters:
      - { in: path, name: category_id, type: string, required: true }
    responses:
      200: { description: Books of the category }
      400: { description: Malformed id }
      404: { description: Category not found }
    """
    category, books = book_service.books_by_category(category_id)
    return success_response(
        f"Books in category '{category.name}' retrieved successfully",
        books_out_schema.dump(books),
        category=category_summary_schema.dump(category),
        count=len(books),
    )


@bp.post("/books")
@admin_required()
def create_book():
    """
    Create a new book
    ---
    tags: [Books]
    consumes: [application/json]
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [title, author, isbn, description, category, publishedDate, publisher, pages, language, price]
          properties:
            title: { type: string, maxLength: 200 }
            author: { type: string, minLength: 2, maxLength: 100 }
            isbn: { type: string, description: "ISBN-10 or ISBN-13" }
            description: { type: string, minLength: 10, maxLength: 1000 }
            category: { type: string, description: Category id }
            publishedDate: { type: string, format: date }
            publisher: { type: string }
            pages: { type: integer, minimum: 1, maximum: 10000 }
            language: { type: string, enum: [spanish, english, french, german, italian, portuguese, other] }
            price: { type: number, example: 19.99 }
            stock: { type: integer, minimum: 0, default: 0 }
            status: { type: string, enum: [available, out-of-stock, discontinued, upcoming] }
            coverImage: { type: string, format: uri }
            averageRating: { type: number, minimum: 0, maximum: 5 }
            reviewCount: { type: integer, minimum: 0 }
            isFeatured: { type: boolean }
    responses:
      201: { description: Created }
      400: { description: Validation error, unknown or inactive category }
      409: { description: Book with same ISBN already exists }
    """
    book = book_service.create_book(json_payload())
    return success_response("Book created successfully", book_out_schema.dump(book), 201)


@bp.get("/books/<book_id>")
@validate_object_id("book_id")
def get_book(book_id):
    """
    Get a book
    ---
    tags: [Books]
    parameters:
      - { in: path, name: book_id, type: string, required: true }
    responses:
      200: { description: OK }
      400: { description: Malformed id }
      404: { description: Not found }
    """
    book = book_service.get_book(book_id)
    return success_response("Book retrieved successfully", book_out_schema.dump(book))


@bp.put("/books/<book_id>")
@admin_required()
@validate_object_id("book_id")
def update_book(book_id):
    """
    Partially update a book
    ---
    tags: [Books]
    consumes: [application/json]
    parameters:
      - { in: path, name: book_id, type: string, required: true }
      - { in: body, name: body, schema: { type: object } }
    responses:
      200: { description: Updated }
      400: { description: Validation error }
      404: { description: Not found }
      409: { description: ISBN already used by another book }
    """
    book = book_service.update_book(book_id, json_payload())
    return success_response("Book updated successfully", book_out_schema.dump(book))


@bp.delete("/books/<book_id>")
@admin_required()
@validate_object_id("book_id")
def delete_book(book_id):
    """
    Delete a book
    ---
    tags: [Books]
    parameters:
      - { in: path, name: book_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      404: { description: Not found }
    """
    summary = book_service.delete_book(book_id)
    return success_response("Book deleted successfully", summary)


@bp.patch("/books/<book_id>/stock")
@admin_required()
@validate_object_id("book_id")
def update_stock(book_id):
    """
    Add, reduce or set stock
    ---
    tags: [Books]
    consumes: [application/json]
    parameters:
      - { in: path, name: book_id, type: string, required: true }
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [quantity, operation]
          properties:
            quantity: { type: integer, minimum: 0 }
            operation: { type: string, enum: [add, reduce, set] }
    responses:
      200: { description: New stock level }
      400: { description: Validation error or insufficient stock }
      404: { description: Not found }
    """
    change = book_service.update_stock(book_id, json_payload())
    return success_response(
        "Stock updated successfully",
        book_out_schema.dump(change.book),
        stockChange={
            "operation": change.operation,
            "quantity": change.quantity,
            "previousStock": change.previous_stock,
            "newStock": change.book.stock,
        },
    )
