from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    select,
)
from sqlalchemy.orm import column_property, relationship

from models.base_model import ID_LENGTH, BaseModel, Base
from models.category import Category

# Largest values the portable Integer and Numeric(10, 2) columns can hold
MAX_INTEGER = 2**31 - 1
MAX_PRICE = Decimal("99999999.99")


class BookStatus(str, Enum):
    AVAILABLE = "available"
    OUT_OF_STOCK = "out-of-stock"
    DISCONTINUED = "discontinued"
    UPCOMING = "upcoming"


class Language(str, Enum):
    SPANISH = "spanish"
    ENGLISH = "english"
    FRENCH = "french"
    GERMAN = "german"
    ITALIAN = "italian"
    PORTUGUESE = "portuguese"
    OTHER = "other"


class StockOperation(str, Enum):
    ADD = "add"
    REDUCE = "reduce"
    SET = "set"


class Book(BaseModel, Base):
    __tablename__ = "books"

    title = Column(String(200), nullable=False)
    author = Column(String(100), nullable=False)
    # Normalized: digits (and a trailing X for ISBN-10) only
    isbn = Column(String(13), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False)
    category_id = Column(
        String(ID_LENGTH), ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    published_date = Column(Date, nullable=False)
    publisher = Column(String(100), nullable=False)
    pages = Column(Integer, nullable=False)
    language = Column(String(20), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=BookStatus.AVAILABLE.value, index=True)
    cover_image = Column(String(500), nullable=True)
    average_rating = Column(Float, nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False)

    category = relationship("Category", back_populates="books", lazy="joined")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_books_stock_nonnegative"),
        CheckConstraint("pages >= 1 AND pages <= 10000", name="ck_books_pages_range"),
        CheckConstraint("price > 0", name="ck_books_price_positive"),
        CheckConstraint("average_rating >= 0 AND average_rating <= 5", name="ck_books_rating_range"),
        Index("ix_books_title", "title"),
        Index("ix_books_author", "author"),
    )

    @property
    def in_stock(self) -> bool:
        return self.stock > 0 and self.status == BookStatus.AVAILABLE.value

    @property
    def formatted_price(self) -> str:
        return f"${self.price:.2f}"


Category.book_count = column_property(
    select(func.count(Book.id))
    .where(Book.category_id == Category.id)
    .correlate_except(Book)
    .scalar_subquery()
)
