from marshmallow import Schema, fields

from models.book import MAX_INTEGER, MAX_PRICE, BookStatus, Language, StockOperation
from models.schemas.category import CategorySummarySchema
from models.schemas.common import (
    ErrorKind,
    Flag,
    ImageUrl,
    Isbn,
    Money,
    ObjectIdString,
    PastDate,
    RequestSchema,
    RoundedFloat,
    TrimmedString,
    UpdateSchemaMixin,
    WholeNumber,
    between,
    length,
    one_of,
)


class BookCreateSchema(RequestSchema):
    title = TrimmedString(required=True, validate=length(1, 200))
    author = TrimmedString(required=True, validate=length(2, 100))
    isbn = Isbn(required=True)
    description = TrimmedString(required=True, validate=length(10, 1000))
    category_id = ObjectIdString(data_key="category", required=True)
    published_date = PastDate(data_key="publishedDate", required=True)
    publisher = TrimmedString(required=True, validate=length(2, 100))
    pages = WholeNumber(required=True, validate=between(1, 10000))
    language = TrimmedString(required=True, validate=one_of([lang.value for lang in Language]))
    price = Money(
        required=True,
        validate=between(0, MAX_PRICE, min_inclusive=False, message="Must be a positive number no greater than {max}."),
    )
    stock = WholeNumber(load_default=0, validate=between(0, MAX_INTEGER))
    # No default here: the status a new book starts in depends on its stock.
    status = TrimmedString(validate=one_of([s.value for s in BookStatus]))
    cover_image = ImageUrl(data_key="coverImage")
    average_rating = RoundedFloat(data_key="averageRating", places=1, validate=between(0, 5))
    review_count = WholeNumber(data_key="reviewCount", validate=between(0, MAX_INTEGER))
    is_featured = Flag(data_key="isFeatured")


class BookUpdateSchema(UpdateSchemaMixin, BookCreateSchema):
    pass


class StockOperationSchema(RequestSchema):
    quantity = WholeNumber(
        required=True,
        validate=between(0, MAX_INTEGER, message="Quantity must be between {min} and {max}."),
    )
    operation = TrimmedString(
        required=True,
        validate=one_of([op.value for op in StockOperation], kind=ErrorKind.INVALID_OPERATION),
    )


class BookOutSchema(Schema):
    id = fields.String()
    title = fields.String()
    author = fields.String()
    isbn = fields.String()
    description = fields.String()
    category = fields.Nested(CategorySummarySchema, allow_none=True)
    published_date = fields.Date(data_key="publishedDate")
    publisher = fields.String()
    pages = fields.Integer()
    language = fields.String()
    price = fields.Float()
    stock = fields.Integer()
    status = fields.String()
    cover_image = fields.String(data_key="coverImage", allow_none=True)
    average_rating = fields.Float(data_key="averageRating")
    review_count = fields.Integer(data_key="reviewCount")
    is_featured = fields.Boolean(data_key="isFeatured")
    in_stock = fields.Boolean(data_key="inStock")
    formatted_price = fields.String(data_key="formattedPrice")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class TopRatedBookSchema(Schema):
    id = fields.String()
    title = fields.String()
    author = fields.String()
    average_rating = fields.Float(data_key="averageRating")
    review_count = fields.Integer(data_key="reviewCount")
    category = fields.Pluck(CategorySummarySchema, "name", allow_none=True)
