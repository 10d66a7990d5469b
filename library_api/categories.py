from __future__ import annotations

from flask import Blueprint

from library_api.responses import success_response
from models.schemas.category import CategoryOutSchema
from services import categories as category_service
from utils.decorators import admin_required, validate_object_id
from utils.http import json_payload, query_args

bp = Blueprint("categories", __name__)

out_schema = CategoryOutSchema()
out_list_schema = CategoryOutSchema(many=True)


@bp.get("/categories")
def list_categories():
    """
    List categories (paginated)
    ---
    tags: [Categories]
    parameters:
      - { in: query, name: page, type: integer, minimum: 1, default: 1 }
      - { in: query, name: limit, type: integer, minimum: 1, maximum: 100, default: 10 }
      - { in: query, name: sort, type: string, description: "name, createdAt or updatedAt; '-' prefix for descending" }
      - { in: query, name: search, type: string }
      - { in: query, name: isActive, type: boolean }
    responses:
      200: { description: Page of categories with a pagination block }
      400: { description: Invalid query parameters }
    """
    items, pagination = category_service.list_categories(query_args())
    return success_response(
        "Categories retrieved successfully", out_list_schema.dump(items), pagination=pagination
    )


@bp.get("/categories/active")
def list_active_categories():
    """
    Active categories ordered by name
    ---
    tags: [Categories]
    responses:
      200: { description: Active categories }
    """
    items = category_service.active_categories()
    return success_response("Active categories retrieved successfully", out_list_schema.dump(items), count=len(items))


@bp.get("/categories/stats")
@admin_required()
def category_stats():
    """
    Category statistics
    ---
    tags: [Categories]
    responses:
      200: { description: Totals and the five categories with most books }
      401: { description: Not signed in }
      403: { description: Not an administrator }
    """
    return success_response("Category statistics retrieved successfully", category_service.category_stats())


@bp.post("/categories")
@admin_required()
def create_category():
    """
    Create a category
    ---
    tags: [Categories]
    consumes: [application/json]
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [name, description]
          properties:
            name: { type: string, minLength: 2, maxLength: 50 }
            description: { type: string, minLength: 10, maxLength: 200 }
            color: { type: string, example: "#007bff" }
            isActive: { type: boolean, default: true }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      409: { description: Name already exists }
    """
    category = category_service.create_category(json_payload())
    return success_response("Category created successfully", out_schema.dump(category), 201)


@bp.get("/categories/<category_id>")
@validate_object_id("category_id")
def get_category(category_id):
    """
    Get a category
    ---
    tags: [Categories]
    parameters:
      - { in: path, name: category_id, type: string, required: true }
    responses:
      200: { description: OK }
      400: { description: Malformed id }
      404: { description: Not found }
    """
    category = category_service.get_category(category_id)
    return success_response("Category retrieved successfully", out_schema.dump(category))


@bp.put("/categories/<category_id>")
@admin_required()
@validate_object_id("category_id")
def update_category(category_id):
    """
    Partially update a category
    ---
    tags: [Categories]
    consumes: [application/json]
    parameters:
      - { in: path, name: category_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            description: { type: string }
            color: { type: string }
            isActive: { type: boolean }
    responses:
      200: { description: Updated }
      400: { description: Validation error }
      404: { description: Not found }
      409: { description: Name already exists }
    """
    category = category_service.update_category(category_id, json_payload())
    return success_response("Category updated successfully", out_schema.dump(category))


@bp.delete("/categories/<category_id>")
@admin_required()
@validate_object_id("category_id")
def delete_category(category_id):
    """
    Delete a category
    Categories still referenced by books are deactivated instead of removed.
    ---
    tags: [Categories]
    parameters:
      - { in: path, name: category_id, type: string, required: true }
    responses:
      200: { description: Deleted, or deactivated when books reference it }
      404: { description: Not found }
    """
    outcome = category_service.delete_category(category_id)
    category = outcome.category
    if outcome.soft:
        return success_response(
            f"Category deactivated: {outcome.books_count} books still reference it",
            {
                "id": category.id,
                "name": category.name,
                "isActive": category.is_active,
                "booksCount": outcome.books_count,
            },
        )
    return success_response("Category deleted successfully", {"id": category.id})


@bp.patch("/categories/<category_id>/toggle-status")
@admin_required()
@validate_object_id("category_id")
def toggle_category_status(category_id):
    """
    Flip a category's isActive flag
    ---
    tags: [Categories]
    parameters:
      - { in: path, name: category_id, type: string, required: true }
    responses:
      200: { description: New status }
      404: { description: Not found }
    """
    category = category_service.toggle_category_status(category_id)
    state = "activated" if category.is_active else "deactivated"
    return success_response(
        f"Category {state} successfully",
        {"id": category.id, "name": category.name, "isActive": category.is_active},
    )
