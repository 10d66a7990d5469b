from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from models.base_model import ActiveFlagMixin, BaseModel, Base

DEFAULT_COLOR = "#007bff"


class Category(ActiveFlagMixin, BaseModel, Base):
    __tablename__ = "categories"

    # Stored already capitalized, so the unique index also covers case variants
    name = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False)
    color = Column(String(7), nullable=False, default=DEFAULT_COLOR)

    # Books keep their category; deleting a category never touches them
    books = relationship("Book", back_populates="category", passive_deletes="all")

    # book_count is attached in models/book.py once Book is mapped
