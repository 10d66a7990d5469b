import pytest

from models.book import MAX_INTEGER, BookStatus
from models.schemas.common import ErrorKind
from services import books as book_service
from services import categories as category_service
from services.exceptions import (
    DuplicateISBN,
    InactiveReference,
    InsufficientStock,
    InvalidReference,
    NotFound,
    ValidationFailed,
)

from conftest import book_payload, category_payload

MISSING_ID = "0" * 24


@pytest.fixture
def category(app_ctx):
    return category_service.create_category(category_payload())


@pytest.fixture
def book(category):
    return book_service.create_book(book_payload(category.id, stock=5, status="available"))


def stock(book_id, quantity, operation):
    return book_service.update_stock(book_id, {"quantity": quantity, "operation": operation})


class TestStatusRules:
    def test_derived_without_explicit_status(self):
        assert book_service.reconcile_status(0, "available", explicit=False) == "out-of-stock"
        assert book_service.reconcile_status(3, "out-of-stock", explicit=False) == "available"
        assert book_service.reconcile_status(0, "discontinued", explicit=False) == "discontinued"
        assert book_service.reconcile_status(4, "upcoming", explicit=False) == "upcoming"

    @pytest.mark.parametrize("stock_level,status", [(0, "available"), (2, "out-of-stock")])
    def test_explicit_contradiction(self, stock_level, status):
        with pytest.raises(ValidationFailed) as exc:
            book_service.reconcile_status(stock_level, status, explicit=True)
        assert exc.value.errors[0]["type"] == ErrorKind.STATUS_CONFLICT.value
        assert exc.value.errors[0]["field"] == "status"

    def test_normalization(self):
        data = book_service.normalize_book_fields({"title": "the hobbit", "author": "jOHN  ronald tolkien"})
        assert data == {"title": "The hobbit", "author": "John Ronald Tolkien"}


class TestCreate:
    def test_created_with_category_inlined(self, book, category):
        assert book.category.id == category.id
        assert book.status == BookStatus.AVAILABLE.value
        assert book.in_stock is True
        assert book.formatted_price == "$19.99"

    def test_zero_stock_without_status_is_out_of_stock(self, category):
        created = book_service.create_book(book_payload(category.id, stock=0))
        assert created.status == BookStatus.OUT_OF_STOCK.value
        assert created.in_stock is False

    def test_available_with_zero_stock_is_rejected(self, category):
        with pytest.raises(ValidationFailed):
            book_service.create_book(book_payload(category.id, stock=0, status="available"))

    def test_missing_category(self, app_ctx):
        with pytest.raises(InvalidReference) as exc:
            book_service.create_book(book_payload(MISSING_ID))
        assert exc.value.field == "category"

    def test_inactive_category(self, category):
        category_service.toggle_category_status(category.id)
        with pytest.raises(InactiveReference):
            book_service.create_book(book_payload(category.id))

    def test_duplicate_isbn_after_normalization(self, category):
        book_service.create_book(book_payload(category.id, isbn="9781451648539"))
        with pytest.raises(DuplicateISBN) as exc:
            book_service.create_book(book_payload(category.id, isbn="978-1-4516-4853-9"))
        assert exc.value.status == 409

    def test_shape_failure_comes_first(self, app_ctx):
        with pytest.raises(ValidationFailed):
            book_service.create_book(book_payload(MISSING_ID, pages=0))


class TestUpdate:
    def test_missing_book_is_reported_before_validation(self, app_ctx):
        with pytest.raises(NotFound):
            book_service.update_book(MISSING_ID, {"pages": 0})

    def test_stock_only_update_derives_status(self, book):
        updated = book_service.update_book(book.id, {"stock": 0})
        assert updated.status == BookStatus.OUT_OF_STOCK.value

    def test_available_requires_stock(self, book):
        book_service.update_book(book.id, {"stock": 0})
        with pytest.raises(ValidationFailed):
            book_service.update_book(book.id, {"status": "available"})

    def test_move_to_inactive_category(self, book):
        archive = category_service.create_category(category_payload(name="Archive", isActive=False))
        with pytest.raises(InactiveReference):
            book_service.update_book(book.id, {"category": archive.id})

    def test_move_to_other_category(self, book):
        poetry = category_service.create_category(category_payload(name="Poetry"))
        updated = book_service.update_book(book.id, {"category": poetry.id, "title": "dune messiah"})
        assert updated.category.name == "Poetry"
        assert updated.title == "Dune messiah"

    def test_isbn_taken_by_another_book(self, book, category):
        other = book_service.create_book(book_payload(category.id))
        with pytest.raises(DuplicateISBN):
            book_service.update_book(other.id, {"isbn": book.isbn})

    def test_same_isbn_is_not_a_conflict(self, book):
        assert book_service.update_book(book.id, {"isbn": book.isbn}).isbn == book.isbn


class TestStockOperations:
    def test_add(self, book):
        change = stock(book.id, 10, "add")
        assert change.book.stock == 15
        assert change.previous_stock == 5

    def test_reduce_to_zero_then_insufficient(self, book):
        change = stock(book.id, 5, "reduce")
        assert change.book.stock == 0
        assert change.book.status == BookStatus.OUT_OF_STOCK.value

        with pytest.raises(InsufficientStock) as exc:
            stock(book.id, 1, "reduce")
        assert exc.value.extra["currentStock"] == 0

    def test_insufficient_leaves_stock_untouched(self, book):
        with pytest.raises(InsufficientStock):
            stock(book.id, 6, "reduce")
        assert book_service.get_book(book.id).stock == 5

    def test_restock_makes_available_again(self, book):
        stock(book.id, 0, "set")
        change = stock(book.id, 2, "add")
        assert change.book.status == BookStatus.AVAILABLE.value

    def test_manual_states_are_kept(self, category):
        upcoming = book_service.create_book(book_payload(category.id, stock=0, status="upcoming"))
        assert stock(upcoming.id, 3, "set").book.status == "upcoming"

    def test_add_past_column_limit_is_a_range_violation(self, book):
        stock(book.id, MAX_INTEGER, "set")
        with pytest.raises(ValidationFailed) as exc:
            stock(book.id, 1, "add")
        assert exc.value.errors[0]["field"] == "quantity"
        assert exc.value.errors[0]["type"] == ErrorKind.RANGE_VIOLATION.value
        assert book_service.get_book(book.id).stock == MAX_INTEGER

    def test_status_is_assigned_before_stock(self, book, monkeypatch):
        statements = []
        execute = book_service.storage.execute

        def recording_execute(statement):
            statements.append(statement)
            return execute(statement)

        monkeypatch.setattr(book_service.storage, "execute", recording_execute)
        change = stock(book.id, 5, "reduce")

        sql = str(statements[0])
        assert sql.index("SET status=") < sql.index(", stock=")
        assert change.book.status == BookStatus.OUT_OF_STOCK.value

    def test_invalid_operation(self, book):
        with pytest.raises(ValidationFailed) as exc:
            stock(book.id, 1, "multiply")
        assert exc.value.errors[0]["type"] == ErrorKind.INVALID_OPERATION.value


class TestReads:
    def test_delete_returns_summary(self, book):
        assert book_service.delete_book(book.id) == {"id": book.id, "title": "Dune", "author": "Frank Herbert"}
        with pytest.raises(NotFound):
            book_service.get_book(book.id)

    def test_list_filters_and_echo(self, category):
        book_service.create_book(book_payload(category.id, title="Cheap", price=5))
        book_service.create_book(book_payload(category.id, title="Pricey", price=50))

        books, pagination, filters = book_service.list_books({"minPrice": "10", "sort": "title"})

        assert [b.title for b in books] == ["Pricey"]
        assert pagination["totalItems"] == 1
        assert filters == {"minPrice": 10.0}

    def test_search(self, category):
        book_service.create_book(book_payload(category.id, title="Foundation", author="Isaac Asimov"))
        book_service.create_book(book_payload(category.id, title="Dune"))

        term, books = book_service.search_books("  asimov ", {})

        assert term == "asimov"
        assert [b.title for b in books] == ["Foundation"]

    def test_featured_and_available(self, category):
        book_service.create_book(book_payload(category.id, title="Star", isFeatured=True, averageRating=4.9))
        book_service.create_book(book_payload(category.id, title="Gone", stock=0))

        assert [b.title for b in book_service.featured_books()] == ["Star"]
        assert [b.title for b in book_service.available_books()] == ["Star"]

    def test_books_by_missing_category(self, app_ctx):
        with pytest.raises(NotFound):
            book_service.books_by_category(MISSING_ID)

    def test_stats(self, category):
        book_service.create_book(book_payload(category.id, price=10, stock=2, reviewCount=3, averageRating=4))
        book_service.create_book(book_payload(category.id, price=20, stock=0))

        stats = book_service.book_stats()

        assert stats["totals"] == {"total": 2, "available": 1, "outOfStock": 1, "featured": 0}
        assert stats["financial"] == {"averagePrice": 15.0, "totalInventoryValue": 20.0}
        assert len(stats["topRated"]) == 1
        assert stats["categoryDistribution"][0]["count"] == 2
