from marshmallow import Schema, fields

from models.category import DEFAULT_COLOR
from models.schemas.common import (
    HEX_COLOR_RE,
    Flag,
    RequestSchema,
    TrimmedString,
    UpdateSchemaMixin,
    length,
    pattern,
)


class CategoryCreateSchema(RequestSchema):
    name = TrimmedString(required=True, validate=length(2, 50))
    description = TrimmedString(required=True, validate=length(10, 200))
    color = TrimmedString(
        load_default=DEFAULT_COLOR,
        validate=pattern(HEX_COLOR_RE, "Must be a hexadecimal color such as #007bff."),
    )
    is_active = Flag(data_key="isActive", load_default=True)


class CategoryUpdateSchema(UpdateSchemaMixin, CategoryCreateSchema):
    pass


class CategoryOutSchema(Schema):
    id = fields.String()
    name = fields.String()
    description = fields.String()
    color = fields.String()
    is_active = fields.Boolean(data_key="isActive")
    book_count = fields.Integer(data_key="bookCount")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class CategorySummarySchema(Schema):
    """Category as inlined into book results."""

    id = fields.String()
    name = fields.String()
    description = fields.String()
    color = fields.String()
