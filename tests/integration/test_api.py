"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient

ALICE = {"X-User-ID": "alice"}
BOB = {"X-User-ID": "bob"}
MALLORY = {"X-User-ID": "mallory"}


@pytest.fixture
def household_id(client: TestClient) -> str:
    """Household owned by alice with bob joined"""
    created = client.post("/v1/households", json={"name": "Flat 4", "display_name": "Alice"}, headers=ALICE)
    assert created.status_code == 201

    joined = client.post(
        "/v1/households/join",
        json={"join_code": created.json()["join_code"], "display_name": "Bob"},
        headers=BOB,
    )
    assert joined.status_code == 200
    return created.json()["household_id"]


def add_expense(client: TestClient, household_id: str, **overrides) -> dict:
    body = {
        "household_id": household_id,
        "description": "Groceries",
        "total_amount": 100,
        "paid_by": "alice",
        "participants": ["alice", "bob"],
        "split_method": "manual",
        "shares": [{"user_id": "alice", "amount": 30}, {"user_id": "bob", "amount": 70}],
        "date": "2024-06-01T10:00:00Z",
    }
    body.update(overrides)
    response = client.post("/v1/expenses", json=body, headers=ALICE)
    assert response.status_code == 201, response.text
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "household_expense_created_total" in response.text


def test_request_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"

    generated = client.get("/health")
    assert generated.headers["X-Request-ID"]


def test_create_and_join_household(client: TestClient, household_id: str):
    response = client.get(f"/v1/households/{household_id}", headers=BOB)

    assert response.status_code == 200
    data = response.json()
    assert data["owner_id"] == "alice"
    assert [m["user_id"] for m in data["members"]] == ["alice", "bob"]
    assert len(data["join_code"]) == 6


def test_join_twice_conflicts(client: TestClient, household_id: str):
    join_code = client.get(f"/v1/households/{household_id}", headers=ALICE).json()["join_code"]

    response = client.post("/v1/households/join", json={"join_code": join_code, "display_name": "Bob"}, headers=BOB)
    assert response.status_code == 409


def test_join_unknown_code(client: TestClient):
    response = client.post("/v1/households/join", json={"join_code": "ZZZZZZ", "display_name": "Bob"}, headers=BOB)
    assert response.status_code == 404


def test_household_access_control(client: TestClient, household_id: str):
    assert client.get(f"/v1/households/{household_id}", headers=MALLORY).status_code == 403
    assert client.get("/v1/households/00000000-0000-0000-0000-000000000000", headers=ALICE).status_code == 404
    assert client.get("/v1/households/not-a-uuid", headers=ALICE).status_code == 400
    assert client.get(f"/v1/households/{household_id}").status_code == 422


def test_balances_after_expense(client: TestClient, household_id: str):
    """Bob owes alice his 70 share"""
    add_expense(client, household_id)

    response = client.get(f"/v1/expenses/household/{household_id}/balances", headers=BOB)

    assert response.status_code == 200
    balances = response.json()
    assert len(balances) == 1
    assert balances[0]["from_user_id"] == "bob"
    assert balances[0]["to_user_id"] == "alice"
    assert balances[0]["amount"] == 70
    assert balances[0]["since_date"].startswith("2024-06-01T10:00:00")


def test_full_settlement_clears_balance(client: TestClient, household_id: str):
    add_expense(client, household_id)

    settlement = client.post(
        "/v1/settlements",
        json={
            "household_id": household_id,
            "from_user_id": "bob",
            "to_user_id": "alice",
            "amount": 70,
            "method": "cash",
            "date": "2024-06-02T09:00:00Z",
        },
        headers=BOB,
    )
    assert settlement.status_code == 201

    balances = client.get(f"/v1/expenses/household/{household_id}/balances", headers=ALICE)
    assert balances.json() == []

    listed = client.get(f"/v1/settlements/household/{household_id}", headers=ALICE)
    assert [s["amount"] for s in listed.json()] == [70]


def test_settlement_to_self_rejected(client: TestClient, household_id: str):
    response = client.post(
        "/v1/settlements",
        json={
            "household_id": household_id,
            "from_user_id": "bob",
            "to_user_id": "bob",
            "amount": 10,
            "date": "2024-06-02T09:00:00Z",
        },
        headers=BOB,
    )
    assert response.status_code == 400


def test_even_split_computes_shares(client: TestClient, household_id: str):
    expense = add_expense(client, household_id, total_amount=10, split_method="even", shares=None)

    assert [(s["user_id"], s["amount"]) for s in expense["shares"]] == [("alice", 5.0), ("bob", 5.0)]


def test_manual_split_requires_shares(client: TestClient, household_id: str):
    body = {
        "household_id": household_id,
        "description": "Rent",
        "total_amount": 100,
        "paid_by": "alice",
        "participants": ["alice", "bob"],
        "split_method": "manual",
        "date": "2024-06-01T10:00:00Z",
    }
    response = client.post("/v1/expenses", json=body, headers=ALICE)
    assert response.status_code == 400


def test_expense_shares_must_sum_to_total(client: TestClient, household_id: str):
    body = {
        "household_id": household_id,
        "description": "Rent",
        "total_amount": 100,
        "paid_by": "alice",
        "participants": ["alice", "bob"],
        "split_method": "manual",
        "shares": [{"user_id": "alice", "amount": 30}, {"user_id": "bob", "amount": 60}],
        "date": "2024-06-01T10:00:00Z",
    }
    response = client.post("/v1/expenses", json=body, headers=ALICE)

    assert response.status_code == 400
    assert "add up" in response.json()["detail"]


def test_expense_participant_must_be_member(client: TestClient, household_id: str):
    body = {
        "household_id": household_id,
        "description": "Pizza",
        "total_amount": 20,
        "paid_by": "alice",
        "participants": ["alice", "mallory"],
        "split_method": "even",
        "date": "2024-06-01T10:00:00Z",
    }
    response = client.post("/v1/expenses", json=body, headers=ALICE)
    assert response.status_code == 400


def test_delete_expense(client: TestClient, household_id: str):
    expense = add_expense(client, household_id)

    assert client.delete(f"/v1/expenses/{expense['expense_id']}", headers=MALLORY).status_code == 403
    assert client.delete(f"/v1/expenses/{expense['expense_id']}", headers=BOB).json() == {"success": True}
    assert client.get(f"/v1/expenses/household/{household_id}", headers=ALICE).json() == []
    assert client.get(f"/v1/expenses/household/{household_id}/balances", headers=ALICE).json() == []


def test_insights_endpoint(client: TestClient, household_id: str):
    """Clock is frozen at 2024-06-15 by the client fixture"""
    add_expense(client, household_id, date="2024-05-03T10:00:00Z", category="groceries")
    add_expense(client, household_id, date="2024-06-03T10:00:00Z", total_amount=200, split_method="even", shares=None)
    add_expense(client, household_id, date="2023-11-03T10:00:00Z", category="rent")  # outside window

    response = client.get(f"/v1/expenses/household/{household_id}/insights", headers=ALICE)

    assert response.status_code == 200
    data = response.json()
    assert [p["month"] for p in data["monthly_trend"]] == [
        "2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06",
    ]
    assert [p["amount"] for p in data["monthly_trend"]][-2:] == [100, 200]
    assert data["total_spent"] == 300
    assert data["average_monthly"] == 150
    assert data["by_category"][0] == {"category": "other", "amount": 200, "percentage": 66.67, "count": 1}
    assert data["predictions"] == {"next_month": 300, "trend": "increasing"}


def test_insights_empty_household(client: TestClient, household_id: str):
    data = client.get(f"/v1/expenses/household/{household_id}/insights", headers=ALICE).json()

    assert len(data["monthly_trend"]) == 6
    assert data["total_spent"] == 0
    assert data["predictions"]["trend"] == "stable"


def test_net_balance_cancels_mutual_debts(client: TestClient, household_id: str):
    # Bob owes alice 20, alice owes bob 15
    add_expense(client, household_id, total_amount=40, shares=[
        {"user_id": "alice", "amount": 20}, {"user_id": "bob", "amount": 20},
    ])
    add_expense(client, household_id, total_amount=30, paid_by="bob", shares=[
        {"user_id": "alice", "amount": 15}, {"user_id": "bob", "amount": 15},
    ])

    response = client.post(
        "/v1/settlements/net-balance",
        json={"household_id": household_id, "other_user_id": "bob"},
        headers=ALICE,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["new_net_balance"] == 5
    assert sorted((s["from_user_id"], s["to_user_id"], s["amount"]) for s in data["settlements"]) == [
        ("alice", "bob", 15),
        ("bob", "alice", 15),
    ]

    balances = client.get(f"/v1/expenses/household/{household_id}/balances", headers=ALICE).json()
    assert [(b["from_user_id"], b["to_user_id"], b["amount"]) for b in balances] == [("bob", "alice", 5)]

    # Only bob owes now, nothing left to net
    again = client.post(
        "/v1/settlements/net-balance",
        json={"household_id": household_id, "other_user_id": "bob"},
        headers=ALICE,
    )
    assert again.status_code == 400


def test_net_balance_with_self_rejected(client: TestClient, household_id: str):
    response = client.post(
        "/v1/settlements/net-balance",
        json={"household_id": household_id, "other_user_id": "alice"},
        headers=ALICE,
    )
    assert response.status_code == 400


def test_categorize_endpoint(client: TestClient):
    response = client.post("/v1/expenses/categorize", json={"description": "Starbucks coffee"}, headers=ALICE)

    assert response.status_code == 200
    assert response.json() == {"category": "dining", "confidence": 70, "reason": "Matched 2 keyword(s)"}


def test_list_households_for_caller(client: TestClient, household_id: str):
    client.post("/v1/households", json={"name": "Cabin", "display_name": "Bob"}, headers=BOB)

    bob_households = client.get("/v1/households", headers=BOB).json()
    alice_households = client.get("/v1/households", headers=ALICE).json()

    assert [h["name"] for h in bob_households] == ["Flat 4", "Cabin"]
    assert [h["household_id"] for h in alice_households] == [household_id]
    assert client.get("/v1/households", headers=MALLORY).json() == []


def test_member_leaves_household(client: TestClient, household_id: str):
    response = client.post(f"/v1/households/{household_id}/leave", headers=BOB)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.get(f"/v1/households/{household_id}", headers=BOB).status_code == 403
    members = client.get(f"/v1/households/{household_id}", headers=ALICE).json()["members"]
    assert [m["user_id"] for m in members] == ["alice"]
    assert client.get("/v1/households", headers=BOB).json() == []


def test_owner_cannot_leave_household(client: TestClient, household_id: str):
    response = client.post(f"/v1/households/{household_id}/leave", headers=ALICE)

    assert response.status_code == 400
    assert response.json()["detail"] == "Owner cannot leave the household"
    assert len(client.get(f"/v1/households/{household_id}", headers=ALICE).json()["members"]) == 2


def test_non_member_cannot_leave_household(client: TestClient, household_id: str):
    assert client.post(f"/v1/households/{household_id}/leave", headers=MALLORY).status_code == 403


def test_expense_shares_keep_submitted_order(client: TestClient, household_id: str):
    add_expense(
        client,
        household_id,
        participants=["bob", "alice"],
        shares=[{"user_id": "bob", "amount": 70}, {"user_id": "alice", "amount": 30}],
    )

    expense = client.get(f"/v1/expenses/household/{household_id}", headers=ALICE).json()[0]

    assert [s["user_id"] for s in expense["shares"]] == ["bob", "alice"]
    assert expense["participants"] == ["bob", "alice"]
