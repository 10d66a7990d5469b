from services import books as book_service

from conftest import book_payload

MISSING_ID = "0" * 24


def test_create_and_fetch(admin_client, client, make_category):
    category = make_category()
    resp = admin_client.post("/api/books", json=book_payload(category["id"], title="the hobbit", author="j.r.r. tolkien"))
    body = resp.get_json()

    assert resp.status_code == 201
    book = body["data"]
    assert book["title"] == "The hobbit"
    assert book["author"] == "J.r.r. Tolkien"
    assert book["category"]["name"] == category["name"]
    assert book["inStock"] is True
    assert book["formattedPrice"] == "$19.99"
    assert book["price"] == 19.99

    fetched = client.get(f"/api/books/{book['id']}").get_json()["data"]
    assert fetched["isbn"] == book["isbn"]


def test_duplicate_isbn_conflict(admin_client, make_category):
    category = make_category()
    first = admin_client.post("/api/books", json=book_payload(category["id"], isbn="9781451648539"))
    second = admin_client.post("/api/books", json=book_payload(category["id"], isbn="9781451648539"))

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.get_json()["field"] == "isbn"


def test_unique_index_backstops_the_isbn_check(admin_client, make_category, monkeypatch):
    category = make_category()
    monkeypatch.setattr(book_service, "isbn_taken", lambda *args, **kwargs: False)

    first = admin_client.post("/api/books", json=book_payload(category["id"], isbn="9780441013593"))
    second = admin_client.post("/api/books", json=book_payload(category["id"], isbn="978-0-441-01359-3"))

    assert first.status_code == 201
    body = second.get_json()
    assert second.status_code == 409
    assert body["field"] == "isbn"


def test_create_with_cover_image(admin_client, make_category):
    category = make_category()
    url = "https://img.example.com/covers/dune.jpg"
    resp = admin_client.post("/api/books", json=book_payload(category["id"], coverImage=url))
    assert resp.status_code == 201
    assert resp.get_json()["data"]["coverImage"] == url


def test_oversized_numbers_are_validation_errors(admin_client, make_category, make_book):
    category = make_category()
    resp = admin_client.post("/api/books", json=book_payload(category["id"], stock=10**20))
    assert resp.status_code == 400
    assert resp.get_json()["errors"][0]["field"] == "stock"

    book = make_book(stock=1)
    resp = admin_client.patch(f"/api/books/{book['id']}/stock", json={"quantity": 10**20, "operation": "add"})
    assert resp.status_code == 400
    assert resp.get_json()["errors"][0]["type"] == "RangeViolation"


def test_blank_sort_uses_default_order(client, make_book):
    make_book()
    resp = client.get("/api/books?sort=")
    assert resp.status_code == 200
    assert len(resp.get_json()["data"]) == 1


def test_reference_errors(admin_client, make_category):
    missing = admin_client.post("/api/books", json=book_payload(MISSING_ID))
    assert missing.status_code == 400
    assert missing.get_json()["field"] == "category"

    inactive = make_category(name="Archive", isActive=False)
    resp = admin_client.post("/api/books", json=book_payload(inactive["id"]))
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "The referenced category is inactive"


def test_status_conflict_is_a_validation_error(admin_client, make_category):
    category = make_category()
    resp = admin_client.post("/api/books", json=book_payload(category["id"], stock=0, status="available"))
    body = resp.get_json()
    assert resp.status_code == 400
    assert body["errors"][0]["type"] == "StatusConflict"


def test_stock_operations(admin_client, make_book):
    book = make_book(stock=5)
    url = f"/api/books/{book['id']}/stock"

    added = admin_client.patch(url, json={"quantity": 10, "operation": "add"}).get_json()
    assert added["stockChange"] == {"operation": "add", "quantity": 10, "previousStock": 5, "newStock": 15}

    emptied = admin_client.patch(url, json={"quantity": 15, "operation": "reduce"}).get_json()
    assert emptied["data"]["stock"] == 0
    assert emptied["data"]["status"] == "out-of-stock"

    resp = admin_client.patch(url, json={"quantity": 1, "operation": "reduce"})
    assert resp.status_code == 400
    assert resp.get_json()["currentStock"] == 0


def test_stock_on_missing_book(admin_client):
    resp = admin_client.patch(f"/api/books/{MISSING_ID}/stock", json={"quantity": 1, "operation": "add"})
    assert resp.status_code == 404


def test_update_and_delete(admin_client, client, make_book):
    book = make_book()

    resp = admin_client.put(f"/api/books/{book['id']}", json={"pages": 500, "isFeatured": True})
    assert resp.get_json()["data"]["pages"] == 500

    deleted = admin_client.delete(f"/api/books/{book['id']}").get_json()
    assert deleted["data"] == {"id": book["id"], "title": "Dune", "author": "Frank Herbert"}
    assert client.get(f"/api/books/{book['id']}").status_code == 404


def test_list_with_filters(client, make_category, make_book):
    category = make_category()
    make_book(category["id"], title="Cheap", price=5)
    make_book(category["id"], title="Pricey", price=50, language="french")

    body = client.get("/api/books?language=french&sort=-price").get_json()

    assert [b["title"] for b in body["data"]] == ["Pricey"]
    assert body["filters"] == {"language": "french"}
    assert body["pagination"]["totalItems"] == 1


def test_list_rejects_bad_price_range(client):
    resp = client.get("/api/books?minPrice=10&maxPrice=5")
    assert resp.status_code == 400
    assert resp.get_json()["errors"][0]["field"] == "maxPrice"


def test_read_variants(client, admin_client, make_category, make_book):
    category = make_category()
    make_book(category["id"], title="Foundation", author="Isaac Asimov", isFeatured=True, averageRating=4.5)
    make_book(category["id"], title="Gone", stock=0)

    search = client.get("/api/books/search/asimov").get_json()
    assert search["searchTerm"] == "asimov"
    assert search["count"] == 1

    assert client.get("/api/books/available").get_json()["count"] == 1
    assert client.get("/api/books/featured").get_json()["data"][0]["title"] == "Foundation"

    by_category = client.get(f"/api/books/category/{category['id']}").get_json()
    assert by_category["count"] == 2
    assert by_category["category"] == {
        "id": category["id"],
        "name": category["name"],
        "description": category["description"],
    }

    stats = admin_client.get("/api/books/stats").get_json()["data"]
    assert stats["totals"]["total"] == 2
    assert stats["topRated"] == []


def test_books_by_category_validates_id(client):
    assert client.get("/api/books/category/xyz").status_code == 400
    assert client.get(f"/api/books/category/{MISSING_ID}").status_code == 404
