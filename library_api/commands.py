"""CLI: ``flask --app library_api seed`` and ``flask --app library_api promote-admin EMAIL``."""
import click

from models import storage
from models.book import Book
from models.category import Category
from services.books import create_book
from services.categories import create_category
from services.exceptions import LibraryError
from services.users import promote_admin

SAMPLE_CATEGORIES = [
    {"name": "Fiction", "description": "Contemporary and classic literary fiction", "color": "#007bff"},
    {"name": "Science", "description": "Science books and popular science", "color": "#28a745"},
    {"name": "Technology", "description": "Programming, computing and new technologies", "color": "#17a2b8"},
]

SAMPLE_BOOKS = [
    {
        "title": "The Little Prince",
        "author": "Antoine de Saint-Exupery",
        "isbn": "9780156012195",
        "description": "A fable about friendship, love and the loss of innocence.",
        "category": "Fiction",
        "publishedDate": "1943-04-06",
        "publisher": "Reynal & Hitchcock",
        "pages": 96,
        "language": "english",
        "price": 12.99,
        "stock": 30,
        "averageRating": 4.7,
        "reviewCount": 950,
        "isFeatured": True,
    },
    {
        "title": "1984",
        "author": "George Orwell",
        "isbn": "9780451524935",
        "description": "A dystopia where Big Brother watches every move.",
        "category": "Fiction",
        "publishedDate": "1949-06-08",
        "publisher": "Secker & Warburg",
        "pages": 328,
        "language": "english",
        "price": 18.50,
        "stock": 22,
        "averageRating": 4.6,
        "reviewCount": 2100,
        "isFeatured": True,
    },
    {
        "title": "Clean Code",
        "author": "Robert C. Martin",
        "isbn": "9780132350884",
        "description": "A handbook for writing clean, maintainable and efficient code.",
        "category": "Technology",
        "publishedDate": "2008-08-01",
        "publisher": "Prentice Hall",
        "pages": 464,
        "language": "english",
        "price": 45.99,
        "stock": 20,
        "averageRating": 4.7,
        "reviewCount": 2500,
        "isFeatured": True,
    },
    {
        "title": "A Brief History of Time",
        "author": "Stephen Hawking",
        "isbn": "9780553380163",
        "description": "A journey through the most complex ideas of modern physics.",
        "category": "Science",
        "publishedDate": "1988-04-01",
        "publisher": "Bantam Books",
        "pages": 256,
        "language": "english",
        "price": 22.00,
        "stock": 18,
        "averageRating": 4.5,
        "reviewCount": 800,
        "isFeatured": True,
    },
]


def seed_catalog() -> tuple[int, int]:
    """Replace all books and categories with the sample catalog."""
    storage.query(Book).delete()
    storage.query(Category).delete()
    storage.save()

    ids = {}
    for payload in SAMPLE_CATEGORIES:
        category = create_category(payload)
        ids[category.name] = category.id
    for payload in SAMPLE_BOOKS:
        create_book(dict(payload, category=ids[payload["category"]]))
    return len(SAMPLE_CATEGORIES), len(SAMPLE_BOOKS)


def register_commands(app):
    @app.cli.command("seed")
    def seed():
        """Wipe the catalog and load sample categories and books."""
        try:
            categories, books = seed_catalog()
        except LibraryError as err:
            raise click.ClickException(f"{err.message} {err.errors or ''}".strip()) from err
        click.echo(f"Seeded {categories} categories and {books} books.")

    @app.cli.command("promote-admin")
    @click.argument("email")
    def promote(email):
        """Give the user with EMAIL the admin role."""
        try:
            user = promote_admin(email)
        except LibraryError as err:
            raise click.ClickException(err.message) from err
        click.echo(f"{user.email} is now an admin.")
