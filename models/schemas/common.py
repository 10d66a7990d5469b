"""
Field-level validation shared by every request schema.

Every failure message raised from here is a ``FieldMessage``: a plain string
that also remembers which kind of failure produced it (missing, wrong type,
bad pattern, out of range...). marshmallow collects messages for all fields in
one pass, so the caller gets the complete, typed error list at once.
"""
from __future__ import annotations

import numbers
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP
from enum import Enum
from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate


class ErrorKind(str, Enum):
    MISSING_FIELD = "MissingField"
    TYPE_MISMATCH = "TypeMismatch"
    PATTERN_MISMATCH = "PatternMismatch"
    RANGE_VIOLATION = "RangeViolation"
    UNKNOWN_FIELD = "UnknownField"
    INVALID_OPERATION = "InvalidOperation"
    STATUS_CONFLICT = "StatusConflict"


OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")
HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
ISBN_RE = re.compile(r"^(?:\d{9}[\dX]|\d{13})$")
# Regexp validators match from the start of the value, so the pattern spans the whole URL.
IMAGE_URL_RE = re.compile(r"^https?://.+\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)


class FieldMessage(str):
    """A validation message tagged with the kind of failure behind it.

    marshmallow formats its messages with ``str.format`` before raising, so
    ``format`` is overridden to carry the tag over to the formatted copy.
    """

    def __new__(cls, text: str, kind: ErrorKind = ErrorKind.TYPE_MISMATCH):
        message = super().__new__(cls, text)
        message.kind = kind
        return message

    def format(self, *args, **kwargs) -> "FieldMessage":
        return FieldMessage(str.format(self, *args, **kwargs), self.kind)


def kind_of(message: Any) -> ErrorKind:
    return getattr(message, "kind", ErrorKind.TYPE_MISMATCH)


def is_object_id(value: Any) -> bool:
    """True iff value is a 24 character hexadecimal identifier."""
    return isinstance(value, str) and OBJECT_ID_RE.match(value) is not None


# Validator factories. Each one tags its message with the failure kind.

def length(min: int | None = None, max: int | None = None) -> validate.Length:
    if min is not None and max is not None:
        text = "Must be between {min} and {max} characters long."
    elif min is not None:
        text = "Must be at least {min} characters long."
    else:
        text = "Must be at most {max} characters long."
    return validate.Length(min=min, max=max, error=FieldMessage(text, ErrorKind.RANGE_VIOLATION))


def between(min=None, max=None, *, min_inclusive=True, message=None) -> validate.Range:
    if message is None:
        if min is not None and max is not None:
            message = "Must be between {min} and {max}."
        elif min is not None:
            message = "Must be at least {min}." if min_inclusive else "Must be greater than {min}."
        else:
            message = "Must be at most {max}."
    return validate.Range(
        min=min,
        max=max,
        min_inclusive=min_inclusive,
        error=FieldMessage(message, ErrorKind.RANGE_VIOLATION),
    )


def pattern(regex: re.Pattern, message: str) -> validate.Regexp:
    return validate.Regexp(regex, error=FieldMessage(message, ErrorKind.PATTERN_MISMATCH))


def one_of(choices, kind: ErrorKind = ErrorKind.RANGE_VIOLATION) -> validate.OneOf:
    return validate.OneOf(choices, error=FieldMessage("Must be one of: {choices}.", kind))


def not_in_future(value: date) -> None:
    if value and value > date.today():
        raise ValidationError(FieldMessage("Date cannot be in the future.", ErrorKind.RANGE_VIOLATION))


# Fields

class TaggedErrorsMixin:
    default_error_messages = {
        "required": FieldMessage("This field is required.", ErrorKind.MISSING_FIELD),
        "null": FieldMessage("This field may not be null.", ErrorKind.MISSING_FIELD),
        "validator_failed": FieldMessage("Invalid value.", ErrorKind.PATTERN_MISMATCH),
    }


class TrimmedString(TaggedErrorsMixin, fields.String):
    """String that strips surrounding whitespace before any length check."""

    default_error_messages = {
        "invalid": FieldMessage("Must be a string.", ErrorKind.TYPE_MISMATCH),
    }

    def __init__(self, *, trim: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.trim = trim

    def _deserialize(self, value, attr, data, **kwargs):
        text = super()._deserialize(value, attr, data, **kwargs)
        return text.strip() if self.trim else text


class ObjectIdString(TrimmedString):
    def __init__(self, **kwargs):
        kwargs.setdefault("validate", pattern(OBJECT_ID_RE, "Must be a valid 24 character hexadecimal id."))
        super().__init__(**kwargs)


def normalize_isbn(raw: str) -> str:
    return "".join(ch for ch in raw if ch not in "- ").upper()


class Isbn(TrimmedString):
    """ISBN-10 or ISBN-13. Hyphens and spaces are dropped before matching."""

    def __init__(self, **kwargs):
        kwargs.setdefault("validate", pattern(ISBN_RE, "Must be a valid ISBN-10 or ISBN-13."))
        super().__init__(**kwargs)

    def _deserialize(self, value, attr, data, **kwargs):
        return normalize_isbn(super()._deserialize(value, attr, data, **kwargs))


class NumberCoercionMixin(TaggedErrorsMixin):
    """Numbers accept numeric text only when the field is built with ``coerce=True``."""

    default_error_messages = {
        "too_large": FieldMessage("Number too large.", ErrorKind.RANGE_VIOLATION),
        "special": FieldMessage("Special numeric values are not permitted.", ErrorKind.TYPE_MISMATCH),
    }

    def __init__(self, *, coerce: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.coerce = coerce

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, bool):
            raise self.make_error("invalid", input=value)
        if isinstance(value, str):
            if not self.coerce:
                raise self.make_error("invalid", input=value)
            value = value.strip()
        return super()._deserialize(value, attr, data, **kwargs)


class WholeNumber(NumberCoercionMixin, fields.Integer):
    default_error_messages = {
        "invalid": FieldMessage("Must be an integer.", ErrorKind.TYPE_MISMATCH),
    }

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, numbers.Real) and not isinstance(value, (bool, numbers.Integral)):
            if value != int(value):
                raise self.make_error("invalid", input=value)
        return super()._deserialize(value, attr, data, **kwargs)


class RoundedFloat(NumberCoercionMixin, fields.Float):
    default_error_messages = {
        "invalid": FieldMessage("Must be a number.", ErrorKind.TYPE_MISMATCH),
    }

    def __init__(self, *, places: int | None = None, **kwargs):
        super().__init__(**kwargs)
        self.places = places

    def _deserialize(self, value, attr, data, **kwargs):
        number = super()._deserialize(value, attr, data, **kwargs)
        return round(number, self.places) if self.places is not None else number


class Money(NumberCoercionMixin, fields.Decimal):
    """Decimal rounded half-up to cents."""

    default_error_messages = {
        "invalid": FieldMessage("Must be a number.", ErrorKind.TYPE_MISMATCH),
    }

    def __init__(self, **kwargs):
        super().__init__(places=2, rounding=ROUND_HALF_UP, **kwargs)


class Flag(TaggedErrorsMixin, fields.Boolean):
    default_error_messages = {
        "invalid": FieldMessage("Must be a boolean.", ErrorKind.TYPE_MISMATCH),
    }


class PastDate(TaggedErrorsMixin, fields.Date):
    """ISO date (or datetime, date part kept) that is not later than today."""

    default_error_messages = {
        "invalid": FieldMessage("Must be a valid ISO date.", ErrorKind.TYPE_MISMATCH),
        "format": FieldMessage("Must be a valid ISO date.", ErrorKind.TYPE_MISMATCH),
    }

    def __init__(self, **kwargs):
        kwargs.setdefault("validate", not_in_future)
        super().__init__(**kwargs)

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str) and "T" in value:
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
            except ValueError as exc:
                raise self.make_error("invalid", input=value) from exc
        return super()._deserialize(value, attr, data, **kwargs)


class ImageUrl(TaggedErrorsMixin, fields.URL):
    default_error_messages = {
        "invalid": FieldMessage("Must be a valid http(s) URL.", ErrorKind.PATTERN_MISMATCH),
    }

    def __init__(self, **kwargs):
        kwargs.setdefault(
            "validate",
            pattern(IMAGE_URL_RE, "Image URL must end in jpg, jpeg, png, gif or webp."),
        )
        super().__init__(schemes={"http", "https"}, **kwargs)


class RequestSchema(Schema):
    """Base for inbound payloads. Unknown keys are dropped unless the load is strict."""

    error_messages = {
        "unknown": FieldMessage("Unknown field.", ErrorKind.UNKNOWN_FIELD),
        "type": FieldMessage("Invalid input type.", ErrorKind.TYPE_MISMATCH),
    }

    class Meta:
        unknown = EXCLUDE


class UpdateSchemaMixin:
    """Loads partially: every field optional and no defaults injected."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("partial", True)
        super().__init__(*args, **kwargs)
