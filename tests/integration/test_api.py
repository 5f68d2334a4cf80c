"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient


def headers(member_id: str) -> dict:
    return {"X-Member-ID": member_id}


def post_expense(client: TestClient, group_id: str, actor: str, **body):
    return client.post(f"/v1/groups/{group_id}/expenses", json=body, headers=headers(actor))


@pytest.fixture
def worked_example(client: TestClient, group_id: str) -> str:
    """Expense1: 30 paid by alice for all three; Expense2: 10 paid by bob for bob and carol"""
    post_expense(client, group_id, "alice", title="Groceries", amount_cents=3000,
                 participant_ids=["alice", "bob", "carol"])
    post_expense(client, group_id, "bob", title="Milk", amount_cents=1000, participant_ids=["bob", "carol"])
    return group_id


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "roomie_settlement_total" in response.text


def test_list_members(client: TestClient, group_id: str):
    response = client.get(f"/v1/groups/{group_id}/members", headers=headers("alice"))

    assert response.status_code == 200
    assert [m["member_id"] for m in response.json()["members"]] == ["alice", "bob", "carol"]


def test_add_expense_endpoint(client: TestClient, group_id: str):
    """Test POST /v1/groups/{group_id}/expenses"""
    response = post_expense(client, group_id, "alice", title="Rent", amount_cents=90000,
                            participant_ids=["alice", "bob", "carol"])

    assert response.status_code == 201
    data = response.json()
    assert data["payer_id"] == "alice"
    assert data["participant_ids"] == ["alice", "bob", "carol"]
    assert data["split_scope"] == "explicit"
    assert data["settled_at"] is None
    assert "X-Request-ID" in response.headers


def test_add_expense_defaults_to_everyone(client: TestClient, group_id: str):
    response = post_expense(client, group_id, "bob", title="Internet", amount_cents=6000)

    assert response.status_code == 201
    assert response.json()["split_scope"] == "all_members"
    assert response.json()["participant_ids"] == ["alice", "bob", "carol"]


def test_add_expense_single_participant_rejected(client: TestClient, group_id: str):
    response = post_expense(client, group_id, "alice", title="Coffee", amount_cents=400, participant_ids=["alice"])

    assert response.status_code == 422
    assert response.json()["detail"] == "Select at least 2 people for split."


def test_add_expense_non_positive_amount_rejected(client: TestClient, group_id: str):
    response = post_expense(client, group_id, "alice", title="Coffee", amount_cents=0,
                            participant_ids=["alice", "bob"])
    assert response.status_code == 422


def test_add_expense_requires_member_header(client: TestClient, group_id: str):
    response = client.post(
        f"/v1/groups/{group_id}/expenses",
        json={"title": "Coffee", "amount_cents": 400, "participant_ids": ["alice", "bob"]},
    )
    assert response.status_code == 422


def test_add_expense_non_member_forbidden(client: TestClient, group_id: str):
    response = post_expense(client, group_id, "mallory", title="Coffee", amount_cents=400,
                            participant_ids=["alice", "bob"])
    assert response.status_code == 403


def test_unknown_group_not_found(client: TestClient):
    response = client.get("/v1/groups/nope/balances", headers=headers("alice"))
    assert response.status_code == 404


def test_delete_expense_payer_only(client: TestClient, group_id: str):
    """Test DELETE is forbidden for non-payers and succeeds for the payer"""
    created = post_expense(client, group_id, "alice", title="Milk", amount_cents=450,
                           participant_ids=["alice", "bob"]).json()
    url = f"/v1/groups/{group_id}/expenses/{created['expense_id']}"

    assert client.delete(url, headers=headers("bob")).status_code == 403
    assert client.delete(url, headers=headers("alice")).status_code == 204
    assert client.delete(url, headers=headers("alice")).status_code == 404


def test_balances_endpoint(client: TestClient, worked_example: str):
    """Test GET /v1/groups/{group_id}/balances previews without settling"""
    response = client.get(f"/v1/groups/{worked_example}/balances", headers=headers("carol"))

    assert response.status_code == 200
    data = response.json()
    assert {b["member_id"]: b["balance_cents"] for b in data["balances"]} == {
        "alice": 2000,
        "bob": -500,
        "carol": -1500,
    }
    assert data["transfers"] == [
        {"from_id": "bob", "to_id": "alice", "amount_cents": 500},
        {"from_id": "carol", "to_id": "alice", "amount_cents": 1500},
    ]
    assert data["unsettled_count"] == 2


def test_settle_endpoint(client: TestClient, worked_example: str):
    """Test POST /v1/groups/{group_id}/settle then a repeat is a no-op"""
    response = client.post(f"/v1/groups/{worked_example}/settle", headers=headers("alice"))

    assert response.status_code == 200
    data = response.json()
    assert data["settled"] is True
    assert {(t["from_id"], t["to_id"], t["amount_cents"]) for t in data["transfers"]} == {
        ("bob", "alice", 500),
        ("carol", "alice", 1500),
    }

    balances = client.get(f"/v1/groups/{worked_example}/balances", headers=headers("alice")).json()
    assert all(b["balance_cents"] == 0 for b in balances["balances"])
    assert balances["unsettled_count"] == 0

    again = client.post(f"/v1/groups/{worked_example}/settle", headers=headers("bob"))
    assert again.status_code == 200
    assert again.json() == {"group_id": worked_example, "settled": False, "transfers": []}


def test_settled_expense_cannot_be_deleted(client: TestClient, worked_example: str):
    expenses = client.get(f"/v1/groups/{worked_example}/expenses", headers=headers("alice")).json()["expenses"]
    client.post(f"/v1/groups/{worked_example}/settle", headers=headers("alice"))

    groceries = next(e for e in expenses if e["title"] == "Groceries")
    response = client.delete(
        f"/v1/groups/{worked_example}/expenses/{groceries['expense_id']}", headers=headers("alice")
    )
    assert response.status_code == 403

    unsettled = client.get(f"/v1/groups/{worked_example}/expenses", headers=headers("alice")).json()
    everything = client.get(
        f"/v1/groups/{worked_example}/expenses?include_settled=true", headers=headers("alice")
    ).json()
    assert unsettled["expenses"] == []
    assert len(everything["expenses"]) == 2


def test_settlement_history_endpoint(client: TestClient, worked_example: str):
    client.post(f"/v1/groups/{worked_example}/settle", headers=headers("carol"))

    response = client.get(f"/v1/groups/{worked_example}/settlements", headers=headers("bob"))

    assert response.status_code == 200
    transfers = response.json()["transfers"]
    assert len(transfers) == 2
    assert all(t["created_by"] == "carol" for t in transfers)


def test_notifications_endpoints(client: TestClient, worked_example: str):
    feed = client.get(f"/v1/groups/{worked_example}/notifications", headers=headers("carol")).json()

    assert feed["unread_count"] == 2
    assert {n["type"] for n in feed["notifications"]} == {"expense_added"}

    first = feed["notifications"][0]["notification_id"]
    read = client.post(f"/v1/groups/{worked_example}/notifications/{first}/read", headers=headers("carol"))
    assert read.json() == {"marked": 1}

    rest = client.post(f"/v1/groups/{worked_example}/notifications/read-all", headers=headers("carol"))
    assert rest.json() == {"marked": 1}

    feed = client.get(f"/v1/groups/{worked_example}/notifications", headers=headers("carol")).json()
    assert feed["unread_count"] == 0
    assert all(n["read"] for n in feed["notifications"])
