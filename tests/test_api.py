"""
End-to-end tests for the HTTP surface, driven through FastAPI's TestClient.
"""
from grocery_backend.models.sql_models import GroceryItemRow


def _names(response):
    return [item["name"] for item in response.json()["items"]]


class TestHealth:

    def test_root_and_health(self, client):
        assert client.get("/").json() == {"message": "Healthy"}
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/health/healthz").json() == {"status": "ok"}
        assert client.get("/health/db").json() == {"status": "ok"}

    def test_debug_config(self, client, settings):
        data = client.get("/debug/config").json()

        assert data["backend"] == "sqlite"
        assert data["in_memory"] is True
        assert data["import_url"] == settings.IMPORT_URL
        assert data["seed_sample_items"] is False
        assert data["list_loaded"] is True


class TestListing:

    def test_empty_store_without_seed(self, client):
        body = client.get("/groceries").json()

        assert body["items"] == []
        assert body["summary"] == {"total": 0, "bought": 0, "remaining": 0}

    def test_seeded_list(self, seeded_client):
        response = seeded_client.get("/groceries")

        assert response.status_code == 200
        assert _names(response) == ["Milk", "Eggs", "Bread"]
        assert [item["id"] for item in response.json()["items"]] == [1, 2, 3]
        assert response.json()["summary"] == {"total": 3, "bought": 0, "remaining": 3}

    def test_search(self, seeded_client):
        response = seeded_client.get("/groceries", params={"q": " EG "})

        assert _names(response) == ["Eggs"]
        assert response.json()["query"] == "EG"
        assert response.json()["summary"]["total"] == 1

    def test_get_by_id(self, seeded_client):
        assert seeded_client.get("/groceries/3").json()["name"] == "Bread"
        assert seeded_client.get("/groceries/42").status_code == 404

    def test_refresh(self, seeded_client):
        assert _names(seeded_client.post("/groceries/refresh")) == ["Milk", "Eggs", "Bread"]


class TestMutations:

    def test_add(self, client):
        response = client.post("/groceries", json={"name": " Apples ", "quantity": "2 bags", "category": "Fruit"})

        assert response.status_code == 201
        created = response.json()
        assert created["id"] == 1
        assert (created["name"], created["quantity"], created["category"], created["bought"]) == (
            "Apples",
            2,
            "Fruit",
            False,
        )
        assert created["created_at"]
        assert client.get("/groceries/1").json() == created

    def test_add_with_quantity_too_large_to_store(self, client):
        response = client.post("/groceries", json={"name": "Rice", "quantity": "99999999999999999999"})

        assert response.status_code == 201
        assert response.json()["quantity"] == 1

    def test_add_requires_name(self, client):
        response = client.post("/groceries", json={"name": "   ", "quantity": 1})

        assert response.status_code == 422
        assert "name" in response.json()["detail"]
        assert client.get("/groceries").json()["items"] == []

    def test_toggle(self, seeded_client):
        assert seeded_client.post("/groceries/1/toggle").json()["bought"] is True
        assert seeded_client.post("/groceries/1/toggle").json()["bought"] is False
        assert seeded_client.post("/groceries/1/toggle", params={"bought": "true"}).json()["bought"] is True
        assert seeded_client.get("/groceries").json()["summary"]["bought"] == 1

    def test_toggle_unknown_item(self, seeded_client):
        assert seeded_client.post("/groceries/99/toggle").status_code == 404

    def test_edit(self, seeded_client):
        seeded_client.post("/groceries/2/toggle")

        response = seeded_client.put("/groceries/2", json={"name": "Duck eggs", "quantity": 6})

        edited = response.json()
        assert response.status_code == 200
        assert (edited["name"], edited["quantity"], edited["category"], edited["bought"]) == (
            "Duck eggs",
            6,
            "",
            True,
        )
        assert seeded_client.get("/groceries/2").json() == edited

    def test_edit_unknown_or_invalid(self, seeded_client):
        assert seeded_client.put("/groceries/99", json={"name": "Ghost"}).status_code == 404
        assert seeded_client.put("/groceries/1", json={"name": ""}).status_code == 422

    def test_store_failure_keeps_list(self, seeded_client):
        GroceryItemRow.__table__.drop(bind=seeded_client.app.state.engine)

        assert seeded_client.post("/groceries/1/toggle").status_code == 503
        assert seeded_client.post("/groceries/refresh").status_code == 503
        assert _names(seeded_client.get("/groceries")) == ["Milk", "Eggs", "Bread"]
        assert seeded_client.get("/health/db").status_code == 200


class TestDeletion:

    def test_two_phase_delete(self, seeded_client):
        pending = seeded_client.post("/groceries/1/deletion")
        assert pending.status_code == 202
        token = pending.json()["token"]
        assert "Milk" in pending.json()["prompt"]
        assert len(seeded_client.get("/groceries").json()["items"]) == 3

        confirmed = seeded_client.post(f"/groceries/deletions/{token}/confirm")

        assert confirmed.json() == {"item_id": 1, "removed": True}
        assert _names(seeded_client.get("/groceries")) == ["Eggs", "Bread"]
        assert seeded_client.post(f"/groceries/deletions/{token}/confirm").status_code == 404

    def test_delete_missing_item_is_noop(self, seeded_client):
        token = seeded_client.post("/groceries/77/deletion").json()["token"]

        confirmed = seeded_client.post(f"/groceries/deletions/{token}/confirm")

        assert confirmed.json() == {"item_id": 77, "removed": False}
        assert len(seeded_client.get("/groceries").json()["items"]) == 3

    def test_cancel(self, seeded_client):
        token = seeded_client.post("/groceries/1/deletion").json()["token"]

        assert seeded_client.delete(f"/groceries/deletions/{token}").status_code == 204
        assert seeded_client.delete(f"/groceries/deletions/{token}").status_code == 404
        assert len(seeded_client.get("/groceries").json()["items"]) == 3


class TestImport:

    def test_import(self, seeded_client, remote_payload):
        remote_payload["json"] = [{"name": "milk"}, {"name": "Tea", "completed": True, "quantity": "2"}]

        response = seeded_client.post("/groceries/import")

        assert response.status_code == 200
        assert response.json()["inserted"] == 1
        assert "Imported 1" in response.json()["message"]
        tea = seeded_client.get("/groceries", params={"q": "tea"}).json()["items"][0]
        assert (tea["category"], tea["bought"], tea["quantity"]) == ("Imported", True, 2)

    def test_import_nothing_new(self, seeded_client, remote_payload):
        remote_payload["json"] = [{"name": "Bread"}]

        response = seeded_client.post("/groceries/import")

        assert response.json()["inserted"] == 0
        assert "no new items" in response.json()["message"]

    def test_remote_failure(self, seeded_client, remote_payload):
        remote_payload["status"] = 503

        response = seeded_client.post("/groceries/import")

        assert response.status_code == 502
        assert "HTTP error! status: 503" in response.json()["detail"]


class TestNotices:

    def test_notices_are_drained(self, seeded_client):
        seeded_client.post("/groceries/99/toggle")

        notices = seeded_client.get("/groceries/notices").json()

        assert [notice["code"] for notice in notices] == ["not_found"]
        assert seeded_client.get("/groceries/notices").json() == []
