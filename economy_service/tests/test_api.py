from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from economy_service.app.main import app
from economy_service.app.services.adjustment_service import get_adjustment_service
from economy_service.app.services.catalog_service import get_catalog_service
from economy_service.app.services.coupon_service import get_coupon_service
from economy_service.app.services.ledger_service import get_ledger_service
from economy_service.app.services.purchase_service import get_purchase_service
from economy_service.app.services.students_service import get_students_service


@pytest.fixture
def client(
    ledger,
    students_service,
    adjustment_service,
    catalog_service,
    purchase_service,
    coupon_service,
) -> Iterator[TestClient]:
    app.dependency_overrides[get_ledger_service] = lambda: ledger
    app.dependency_overrides[get_students_service] = lambda: students_service
    app.dependency_overrides[get_adjustment_service] = lambda: adjustment_service
    app.dependency_overrides[get_catalog_service] = lambda: catalog_service
    app.dependency_overrides[get_purchase_service] = lambda: purchase_service
    app.dependency_overrides[get_coupon_service] = lambda: coupon_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _register(client: TestClient, name: str = "김민준", number: int = 1) -> str:
    resp = client.post(
        "/api/v1/students",
        json={"name": name, "grade": 5, "class_number": 2, "number": number},
    )
    assert resp.status_code == 201
    return resp.json()["id"]


def _create_item(client: TestClient, price: int = 30) -> str:
    resp = client.post(
        "/api/v1/shop/items",
        json={"title": "좌석 변경권", "category": "privilege", "price": price},
    )
    assert resp.status_code == 201
    return resp.json()["id"]


def test_health(client: TestClient) -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_request_trace_headers_are_echoed(client: TestClient) -> None:
    resp = client.get(
        "/api/v1/students",
        headers={"X-Request-Id": "req-123", "X-Actor-Role": "admin"},
    )

    assert resp.status_code == 200
    assert resp.headers["X-Request-Id"] == "req-123"
    assert resp.headers["X-Span-Id"] == "0"


def test_adjust_then_read_balance_and_history(client: TestClient) -> None:
    student_id = _register(client)

    resp = client.post(
        f"/api/v1/students/{student_id}/adjust",
        json={"amount": 25, "reason": "참여"},
    )
    assert resp.status_code == 200
    assert resp.json()["type"] == "earn"
    assert resp.json()["source"] == "admin"

    balance = client.get(f"/api/v1/students/{student_id}/balance").json()
    assert balance == {"student_id": student_id, "points": 25}

    history = client.get(
        f"/api/v1/students/{student_id}/history", params={"type": "earn"}
    ).json()
    assert [e["amount"] for e in history] == [25]

    check = client.get(f"/api/v1/students/{student_id}/balance/verify").json()
    assert check["is_consistent"] is True


def test_business_errors_map_to_status_codes(client: TestClient) -> None:
    student_id = _register(client)
    item_id = _create_item(client, price=30)

    not_found = client.get("/api/v1/students/507f1f77bcf86cd799439011/balance")
    assert not_found.status_code == 404
    assert not_found.json()["detail"]["code"] == "not_found"

    invalid = client.post(
        f"/api/v1/students/{student_id}/adjust", json={"amount": 0, "reason": "x"}
    )
    assert invalid.status_code == 400
    assert invalid.json()["detail"]["code"] == "invalid_argument"

    insufficient = client.post(
        "/api/v1/shop/purchases", json={"student_id": student_id, "item_id": item_id}
    )
    assert insufficient.status_code == 402
    assert insufficient.json()["detail"]["code"] == "insufficient_balance"

    client.post(f"/api/v1/shop/items/{item_id}/deactivate")
    inactive = client.post(
        "/api/v1/shop/purchases", json={"student_id": student_id, "item_id": item_id}
    )
    assert inactive.status_code == 409
    assert inactive.json()["detail"]["code"] == "item_inactive"


def test_purchase_and_coupon_lifecycle(client: TestClient) -> None:
    student_id = _register(client)
    item_id = _create_item(client, price=30)
    client.post(f"/api/v1/students/{student_id}/adjust", json={"amount": 40, "reason": "초기 지급"})

    purchase = client.post(
        "/api/v1/shop/purchases", json={"student_id": student_id, "item_id": item_id}
    )
    assert purchase.status_code == 201
    coupon = purchase.json()
    assert coupon["status"] == "unused"
    assert coupon["item"]["title"] == "좌석 변경권"

    premature = client.post(f"/api/v1/coupons/{coupon['id']}/approve")
    assert premature.status_code == 409
    assert premature.json()["detail"]["code"] == "invalid_transition"

    used = client.post(f"/api/v1/coupons/{coupon['id']}/use", json={"student_id": student_id})
    assert used.status_code == 200
    assert used.json()["status"] == "pending"

    approved = client.post(f"/api/v1/coupons/{coupon['id']}/approve")
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert approved.json()["used_at"] is not None

    listed = client.get("/api/v1/coupons", params={"status": "approved"}).json()
    assert [c["id"] for c in listed["items"]] == [coupon["id"]]
    assert listed["counts"]["approved"] == 1

    box = client.get(f"/api/v1/students/{student_id}/coupons").json()
    assert [c["id"] for c in box] == [coupon["id"]]

    assert client.get(f"/api/v1/students/{student_id}/balance").json()["points"] == 10


def test_points_overview_and_bulk_operations(client: TestClient) -> None:
    first = _register(client, "김민준", 1)
    second = _register(client, "이서연", 2)

    granted = client.post("/api/v1/points/grant-all", json={"amount": 10, "reason": "학급 목표"})
    assert granted.json()["affected"] == 2

    overview = client.get("/api/v1/points/overview").json()
    assert overview["total_points"] == 20
    assert {s["student_id"] for s in overview["students"]} == {first, second}
    assert len(overview["recent_history"]) == 2

    reset = client.post("/api/v1/points/reset", json={"reason": "학기 초기화"})
    assert reset.json()["affected"] == 2
    assert client.get("/api/v1/points/overview").json()["total_points"] == 0


def test_expire_endpoint_returns_count(client: TestClient) -> None:
    resp = client.post("/api/v1/coupons/expire")

    assert resp.status_code == 200
    assert resp.json() == {"expired": 0}
