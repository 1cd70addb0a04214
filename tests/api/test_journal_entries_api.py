"""HTTP surface of the journal entry store (/journal-entries)."""

import pytest


@pytest.fixture
def period_id(client):
    response = client.post(
        "/accounting-periods",
        json={"name": "دی ۱۴۰۳", "startDate": "2025-01-01", "endDate": "2025-01-31"},
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def entry_body(api_accounts, period_id):
    def _body(number: str = "س-001", debit: str = "35000000", credit: str = "35000000"):
        return {
            "number": number,
            "date": "2025-01-15",
            "description": "خرید کالا",
            "periodId": period_id,
            "items": [
                {"accountId": str(api_accounts["1301"].id), "debit": debit, "credit": "0"},
                {"accountId": str(api_accounts["2101"].id), "debit": "0", "credit": credit},
            ],
        }

    return _body


class TestCreate:
    def test_create_entry(self, client, entry_body, period_id):
        response = client.post("/journal-entries", json=entry_body(), headers={"X-Actor-Id": "maryam"})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "سند حسابداری با موفقیت ثبت شد"
        data = body["data"]
        assert data["number"] == "س-001"
        assert data["date"] == "2025-01-15"
        assert data["status"] == "DRAFT"
        assert data["periodId"] == period_id
        assert data["periodName"] == "دی ۱۴۰۳"
        assert data["totalDebit"] == 35000000
        assert data["totalCredit"] == 35000000
        assert data["createdBy"] == "maryam"
        assert [i["accountCode"] for i in data["items"]] == ["1301", "2101"]
        assert data["items"][0]["accountName"] == "موجودی کالا"

    def test_default_actor(self, client, entry_body):
        data = client.post("/journal-entries", json=entry_body()).json()["data"]
        assert data["createdBy"] == "admin"

    def test_imbalanced_entry(self, client, entry_body):
        response = client.post("/journal-entries", json=entry_body(debit="100", credit="90"))

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "ImbalancedEntry"
        assert body["error"] == "مجموع بدهکار و بستانکار باید برابر باشند"
        assert body["details"]["difference"] == 10

    def test_single_line_rejected(self, client, entry_body):
        payload = entry_body()
        payload["items"] = payload["items"][:1]

        response = client.post("/journal-entries", json=payload)

        assert response.status_code == 400
        assert response.json()["kind"] == "TooFewLines"

    def test_missing_field_is_validation_error(self, client, entry_body):
        payload = entry_body()
        del payload["description"]

        response = client.post("/journal-entries", json=payload)

        assert response.status_code == 400
        assert response.json()["kind"] == "ValidationError"

    def test_unknown_period_is_404(self, client, entry_body):
        payload = entry_body()
        payload["periodId"] = "00000000-0000-0000-0000-000000000000"
        assert client.post("/journal-entries", json=payload).status_code == 404

    def test_duplicate_number(self, client, entry_body):
        client.post("/journal-entries", json=entry_body())
        response = client.post("/journal-entries", json=entry_body())
        assert response.status_code == 400
        assert response.json()["code"] == "DUPLICATE_ENTRY_NUMBER"


class TestReadAndList:
    def test_get_entry(self, client, entry_body):
        created = client.post("/journal-entries", json=entry_body()).json()["data"]

        response = client.get(f"/journal-entries/{created['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["id"] == created["id"]

    def test_get_unknown_entry(self, client):
        response = client.get("/journal-entries/not-a-uuid")
        assert response.status_code == 404
        assert response.json()["error"] == "سند حسابداری یافت نشد"

    def test_list_paginates(self, client, entry_body):
        for n in range(1, 13):
            client.post("/journal-entries", json=entry_body(number=f"JV-{n:02d}"))

        body = client.get("/journal-entries", params={"page": 2, "limit": 5}).json()

        assert body["success"] is True
        assert len(body["data"]) == 5
        assert body["pagination"] == {
            "currentPage": 2,
            "totalPages": 3,
            "totalItems": 12,
            "itemsPerPage": 5,
        }

    def test_list_filters(self, client, entry_body):
        first = client.post("/journal-entries", json=entry_body(number="A-1")).json()["data"]
        client.post("/journal-entries", json=entry_body(number="B-1"))
        client.post(f"/journal-entries/{first['id']}")

        posted = client.get("/journal-entries", params={"status": "POSTED"}).json()
        assert [e["number"] for e in posted["data"]] == ["A-1"]

        searched = client.get("/journal-entries", params={"search": "B-"}).json()
        assert [e["number"] for e in searched["data"]] == ["B-1"]

    def test_limit_above_maximum_rejected(self, client):
        assert client.get("/journal-entries", params={"limit": 1000}).status_code == 400


class TestLifecycle:
    def test_post_then_post_again(self, client, entry_body):
        created = client.post("/journal-entries", json=entry_body()).json()["data"]

        posted = client.post(f"/journal-entries/{created['id']}")
        assert posted.status_code == 200
        assert posted.json()["data"]["status"] == "POSTED"
        assert posted.json()["message"] == "سند حسابداری با موفقیت ثبت نهایی شد"

        again = client.post(f"/journal-entries/{created['id']}")
        assert again.status_code == 400
        assert again.json()["kind"] == "InvalidStateTransition"

    def test_update_draft(self, client, entry_body):
        created = client.post("/journal-entries", json=entry_body()).json()["data"]

        response = client.put(
            f"/journal-entries/{created['id']}",
            json={"description": "خرید اصلاحی", "version": created["version"]},
        )

        assert response.status_code == 200
        assert response.json()["data"]["description"] == "خرید اصلاحی"
        assert response.json()["data"]["version"] == created["version"] + 1

    def test_update_with_stale_version_conflicts(self, client, entry_body):
        created = client.post("/journal-entries", json=entry_body()).json()["data"]
        client.put(f"/journal-entries/{created['id']}", json={"description": "v2"})

        response = client.put(
            f"/journal-entries/{created['id']}",
            json={"description": "v3", "version": created["version"]},
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "OptimisticLockConflict"

    def test_update_status_posts(self, client, entry_body):
        created = client.post("/journal-entries", json=entry_body()).json()["data"]
        response = client.put(f"/journal-entries/{created['id']}", json={"status": "POSTED"})
        assert response.json()["data"]["status"] == "POSTED"

    def test_cancel(self, client, entry_body):
        created = client.post("/journal-entries", json=entry_body()).json()["data"]
        response = client.post(f"/journal-entries/{created['id']}/cancel")
        assert response.json()["data"]["status"] == "CANCELLED"

    def test_delete_draft(self, client, entry_body):
        created = client.post("/journal-entries", json=entry_body()).json()["data"]

        response = client.delete(f"/journal-entries/{created['id']}")

        assert response.json() == {"success": True, "message": "سند حسابداری با موفقیت حذف شد"}
        assert client.get(f"/journal-entries/{created['id']}").status_code == 404

    def test_request_id_echoed(self, client):
        response = client.get("/journal-entries", headers={"X-Request-Id": "req-42"})
        assert response.headers["X-Request-Id"] == "req-42"
