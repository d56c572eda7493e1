"""
Route tests for bookstore_service.

These run the real app (lifespan, engine, tables) through FastAPI's
TestClient against a throwaway SQLite file.
"""
import pytest
from fastapi.testclient import TestClient

import config
from catalog import by_id
from db.exceptions import ConfigurationError
from main import create_app


def add(client, book_id, quantity=1, user_id=None):
    body = {"bookId": book_id, "quantity": quantity}
    if user_id:
        body["userId"] = user_id
    return client.post("/api/cart", json=body)


class TestHealthAndStartup:

    def test_health_check(self, test_client: TestClient):
        response = test_client.get("/")

        assert response.status_code == 200
        assert response.json() == {"status": "bookstore_service running"}

    def test_startup_without_db_url_fails(self, monkeypatch):
        monkeypatch.setattr(config, "load_dotenv", lambda: None)
        monkeypatch.delenv("BOOKSTORE_DB_URL", raising=False)

        with pytest.raises(ConfigurationError):
            with TestClient(create_app()):
                pass


class TestBooks:

    def test_list_books(self, test_client: TestClient):
        response = test_client.get("/api/books")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 8
        assert data[0]["title"] == "The Great Gatsby"
        assert set(data[0]["genres"]) == {"Classic", "Fiction"}

    def test_get_book(self, test_client: TestClient):
        response = test_client.get("/api/books/3")

        assert response.status_code == 200
        assert response.json()["author"] == "George Orwell"

    def test_unknown_book(self, test_client: TestClient):
        response = test_client.get("/api/books/404")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_book_reviews(self, test_client: TestClient):
        response = test_client.get("/api/books/1/reviews")

        assert response.status_code == 200
        data = response.json()
        assert [review["id"] for review in data] == ["r2", "r1"]
        assert data[1]["verified"] is True
        assert data[0]["book_id"] == "1"

    def test_book_without_reviews(self, test_client: TestClient):
        response = test_client.get("/api/books/2/reviews")

        assert response.status_code == 200
        assert response.json() == []

    def test_reviews_of_unknown_book(self, test_client: TestClient):
        response = test_client.get("/api/books/404/reviews")

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "details": "Book 404 not found"}


class TestCartRows:

    def test_create_uses_guest_by_default(self, test_client: TestClient):
        response = add(test_client, "1", 2)

        assert response.status_code == 201
        data = response.json()
        assert data["userId"] == "guest-user"
        assert data["bookId"] == "1"
        assert data["quantity"] == 2
        assert data["id"]
        assert data["addedAt"]

    def test_list_returns_raw_rows(self, test_client: TestClient):
        add(test_client, "1", 2)
        add(test_client, "1", 3)

        response = test_client.get("/api/cart")

        assert response.status_code == 200
        assert sorted(row["quantity"] for row in response.json()) == [2, 3]

    def test_list_for_other_user(self, test_client: TestClient):
        add(test_client, "1", 1)
        add(test_client, "2", 1, user_id="reader-42")

        response = test_client.get("/api/cart", params={"userId": "reader-42"})

        assert [row["bookId"] for row in response.json()] == ["2"]

    def test_update(self, test_client: TestClient):
        item_id = add(test_client, "1", 1).json()["id"]

        response = test_client.put("/api/cart", json={"id": item_id, "quantity": 5})

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert test_client.get("/api/cart").json()[0]["quantity"] == 5

    def test_update_to_zero_is_rejected(self, test_client: TestClient):
        item_id = add(test_client, "1", 3).json()["id"]

        response = test_client.put("/api/cart", json={"id": item_id, "quantity": 0})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert test_client.get("/api/cart").json()[0]["quantity"] == 3

    def test_update_to_boolean_is_rejected(self, test_client: TestClient):
        item_id = add(test_client, "1", 3).json()["id"]

        response = test_client.put("/api/cart", json={"id": item_id, "quantity": True})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert test_client.get("/api/cart").json()[0]["quantity"] == 3

    def test_update_missing_item(self, test_client: TestClient):
        response = test_client.put("/api/cart", json={"id": "nope", "quantity": 1})

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "details": "Cart item nope not found"}

    def test_delete(self, test_client: TestClient):
        item_id = add(test_client, "1", 1).json()["id"]

        response = test_client.delete("/api/cart", params={"itemId": item_id})

        assert response.status_code == 200
        assert test_client.get("/api/cart").json() == []

    def test_delete_missing_item(self, test_client: TestClient):
        response = test_client.delete("/api/cart", params={"itemId": "nope"})

        assert response.status_code == 404

    @pytest.mark.parametrize("body", [
        {"bookId": "1", "quantity": 0},
        {"bookId": "1", "quantity": -2},
        {"bookId": "1", "quantity": "many"},
        {"bookId": "1", "quantity": True},
        {"bookId": "1", "quantity": 2.5},
        {"quantity": 1},
    ])
    def test_create_rejects_bad_body(self, test_client: TestClient, body):
        response = test_client.post("/api/cart", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert test_client.get("/api/cart").json() == []


class TestCartSummary:

    def test_summary_merges_fragmented_rows(self, test_client: TestClient):
        add(test_client, "1", 2)
        add(test_client, "1", 3)
        add(test_client, "2", 1)

        response = test_client.get("/api/cart/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["userId"] == "guest-user"
        assert [(line["bookId"], line["quantity"]) for line in data["lines"]] == [("1", 5), ("2", 1)]
        assert len(data["lines"][0]["itemIds"]) == 2
        assert data["itemCount"] == 6
        assert data["totalPrice"] == round(by_id("1").price * 5 + by_id("2").price, 2)

    def test_summary_skips_books_missing_from_catalog(self, test_client: TestClient):
        add(test_client, "retired-book", 1)
        add(test_client, "4", 1)

        data = test_client.get("/api/cart/summary").json()

        assert [line["bookId"] for line in data["lines"]] == ["4"]
        assert data["totalPrice"] == by_id("4").price

    def test_summary_does_not_rewrite_storage(self, test_client: TestClient):
        add(test_client, "1", 2)
        add(test_client, "1", 3)

        test_client.get("/api/cart/summary")

        assert len(test_client.get("/api/cart").json()) == 2
