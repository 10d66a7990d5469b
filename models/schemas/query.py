from marshmallow import ValidationError, validates_schema

from models.book import MAX_INTEGER, BookStatus, Language
from models.schemas.common import (
    ErrorKind,
    FieldMessage,
    Flag,
    ObjectIdString,
    RequestSchema,
    RoundedFloat,
    TrimmedString,
    WholeNumber,
    between,
    length,
    one_of,
)


class PageQuerySchema(RequestSchema):
    """Pagination shared by every list endpoint. Query strings coerce numeric text."""

    page = WholeNumber(coerce=True, load_default=1, validate=between(1, MAX_INTEGER))
    limit = WholeNumber(coerce=True, load_default=10, validate=between(1, 100))
    # Blank falls back to the default ordering
    sort = TrimmedString(validate=length(max=100))
    search = TrimmedString(validate=length(max=100))


class PriceRangeMixin:
    @validates_schema
    def validate_price_range(self, data, **kwargs):
        low, high = data.get("min_price"), data.get("max_price")
        if low is not None and high is not None and low > high:
            raise ValidationError(
                FieldMessage("maxPrice must be greater than or equal to minPrice.", ErrorKind.RANGE_VIOLATION),
                field_name="maxPrice",
            )


class ListQuerySchema(PriceRangeMixin, PageQuerySchema):
    category = ObjectIdString()
    status = TrimmedString(validate=one_of([s.value for s in BookStatus]))
    min_price = RoundedFloat(data_key="minPrice", coerce=True, validate=between(0))
    max_price = RoundedFloat(data_key="maxPrice", coerce=True, validate=between(0))
    language = TrimmedString(validate=one_of([lang.value for lang in Language]))
    is_featured = Flag(data_key="isFeatured")


class CategoryListQuerySchema(PageQuerySchema):
    is_active = Flag(data_key="isActive")


class BookSearchQuerySchema(PriceRangeMixin, RequestSchema):
    term = TrimmedString(required=True, validate=length(1, 100))
    category = ObjectIdString()
    min_price = RoundedFloat(data_key="minPrice", coerce=True, validate=between(0))
    max_price = RoundedFloat(data_key="maxPrice", coerce=True, validate=between(0))
    language = TrimmedString(validate=one_of([lang.value for lang in Language]))
