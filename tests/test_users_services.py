from datetime import datetime, timedelta, timezone

from styledecor.models import Booking, Payment, Service, User

from support import auth, book, count, fetch, make_service, make_user


# ---------- users ----------

def test_create_user_then_already_exists(client, db_sync):
    payload = {"email": "ana@example.com", "name": "Ana", "photo_url": "https://img.test/ana.png"}

    first = client.post("/users", json=payload)
    assert first.status_code == 200
    assert first.json()["message"] == "User created"
    assert first.json()["user"]["role"] == "user"

    second = client.post("/users", json={**payload, "name": "Someone Else"})
    assert second.json()["message"] == "User already exists"
    assert second.json()["user"]["name"] == "Ana"
    assert count(db_sync, User) == 1


def test_create_user_cannot_choose_role(client):
    resp = client.post("/users", json={"email": "ana@example.com", "role": "admin"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidInput"


def test_admin_searches_users_with_pagination(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin", name="Boss")
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    for i in range(3):
        db_sync.add(User(email=f"guest{i}@example.com", name=f"Guest {i}", created_at=base + timedelta(days=i)))
    db_sync.commit()

    resp = client.get("/users", params={"search_text": "guest", "limit": 2}, headers=auth("boss@example.com"))
    assert [u["email"] for u in resp.json()] == ["guest2@example.com", "guest1@example.com"]

    page2 = client.get(
        "/users", params={"search_text": "GUEST", "limit": 2, "page": 2}, headers=auth("boss@example.com")
    )
    assert [u["email"] for u in page2.json()] == ["guest0@example.com"]


def test_user_search_limit_is_capped(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    db_sync.add_all([User(email=f"guest{i}@example.com") for i in range(60)])
    db_sync.commit()

    resp = client.get("/users", params={"limit": 500}, headers=auth("boss@example.com"))
    assert resp.status_code == 200
    assert len(resp.json()) == 50

    rest = client.get("/users", params={"limit": 500, "page": 2}, headers=auth("boss@example.com"))
    assert len(rest.json()) == 11


def test_admin_changes_role(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    ana = make_user(db_sync, "ana@example.com")

    resp = client.patch(f"/users/{ana.id}/role", json={"role": " Decorator "}, headers=auth("boss@example.com"))
    assert resp.status_code == 200
    assert resp.json()["role"] == "decorator"
    assert fetch(db_sync, User, ana.id).role == "decorator"


def test_role_change_rejects_unknown_role(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    ana = make_user(db_sync, "ana@example.com")

    resp = client.patch(f"/users/{ana.id}/role", json={"role": "superuser"}, headers=auth("boss@example.com"))
    assert resp.status_code == 400
    assert fetch(db_sync, User, ana.id).role == "user"


def test_role_change_for_unknown_user(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    resp = client.patch(
        "/users/6f1c1d1e-0000-4000-8000-000000000000/role",
        json={"role": "admin"},
        headers=auth("boss@example.com"),
    )
    assert resp.status_code == 404


def test_role_change_requires_admin(client, db_sync):
    ana = make_user(db_sync, "ana@example.com")
    resp = client.patch(f"/users/{ana.id}/role", json={"role": "admin"}, headers=auth("ana@example.com"))
    assert resp.status_code == 403
    assert fetch(db_sync, User, ana.id).role == "user"


# ---------- services ----------

def test_service_catalogue_is_public_and_filterable(client, db_sync):
    make_service(db_sync, name="Wedding Stage", cost=500.0, category="wedding")
    make_service(db_sync, name="Birthday Balloons", cost=80.0, category="birthday")
    make_service(db_sync, name="Office Party", cost=250.0, category="corporate")

    assert len(client.get("/services").json()) == 3

    cheap = client.get("/services", params={"max_budget": 250}).json()
    assert sorted(s["name"] for s in cheap) == ["Birthday Balloons", "Office Party"]

    mid = client.get("/services", params={"min_budget": 100, "max_budget": 300}).json()
    assert [s["name"] for s in mid] == ["Office Party"]

    by_category = client.get("/services", params={"category": "wedding"}).json()
    assert [s["name"] for s in by_category] == ["Wedding Stage"]

    by_name = client.get("/services", params={"name": "balloon"}).json()
    assert [s["name"] for s in by_name] == ["Birthday Balloons"]


def test_get_service_by_id(client, db_sync):
    service = make_service(db_sync)
    resp = client.get(f"/services/{service.id}")
    assert resp.json()["name"] == "Wedding Stage"

    missing = client.get("/services/6f1c1d1e-0000-4000-8000-000000000000")
    assert missing.status_code == 404


def test_admin_creates_service(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    payload = {"name": "Haldi Decor", "category": "wedding", "cost": 320.5, "unit": "per event"}

    resp = client.post("/services", json=payload, headers=auth("boss@example.com"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["cost"] == 320.5
    assert body["is_active"] is True


def test_service_mutations_require_admin(client, db_sync):
    service = make_service(db_sync)
    payload = {"name": "Haldi Decor", "category": "wedding", "cost": 320.5}

    assert client.post("/services", json=payload, headers=auth("ana@example.com")).status_code == 403
    assert client.patch(f"/services/{service.id}", json={"cost": 1}, headers=auth("ana@example.com")).status_code == 403
    assert client.delete(f"/services/{service.id}", headers=auth("ana@example.com")).status_code == 403
    assert client.post("/services", json=payload).status_code == 401


def test_create_service_rejects_negative_cost(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    resp = client.post(
        "/services",
        json={"name": "Bad", "category": "wedding", "cost": -1},
        headers=auth("boss@example.com"),
    )
    assert resp.status_code == 400
    assert count(db_sync, Service) == 0


def test_update_service_partial(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    service = make_service(db_sync, cost=150.0)

    resp = client.patch(f"/services/{service.id}", json={"cost": 175.0}, headers=auth("boss@example.com"))
    assert resp.status_code == 200
    assert resp.json()["cost"] == 175.0
    assert resp.json()["name"] == "Wedding Stage"


def test_update_service_rejects_empty_and_null(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    service = make_service(db_sync)

    empty = client.patch(f"/services/{service.id}", json={}, headers=auth("boss@example.com"))
    assert empty.status_code == 400

    null = client.patch(f"/services/{service.id}", json={"name": None}, headers=auth("boss@example.com"))
    assert null.status_code == 400
    assert fetch(db_sync, Service, service.id).name == "Wedding Stage"


def test_price_change_does_not_touch_existing_bookings(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    service = make_service(db_sync, cost=150.0)
    booking = book(client, "ana@example.com", service.id)

    client.patch(f"/services/{service.id}", json={"cost": 999.0}, headers=auth("boss@example.com"))
    assert fetch(db_sync, Booking, booking["id"]).cost == 150.0


def test_delete_service(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    service = make_service(db_sync)
    service_id = service.id

    resp = client.delete(f"/services/{service_id}", headers=auth("boss@example.com"))
    assert resp.json() == {"message": "Service deleted"}
    assert count(db_sync, Service) == 0

    again = client.delete(f"/services/{service_id}", headers=auth("boss@example.com"))
    assert again.status_code == 404


# ---------- admin ----------

def test_analytics_sums_revenue_and_counts_demand(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    stage = make_service(db_sync, name="Wedding Stage")
    balloons = make_service(db_sync, name="Birthday Balloons", category="birthday")
    book(client, "ana@example.com", stage.id)
    book(client, "bob@example.com", stage.id)
    book(client, "ana@example.com", balloons.id)

    db_sync.add_all([
        Payment(transaction_id="pi_1", booking_id="b1", amount=150.0, currency="usd",
                payment_status="paid", tracking_id="STYL-20261017-AAAAAA"),
        Payment(transaction_id="pi_2", booking_id="b2", amount=99.5, currency="usd",
                payment_status="paid", tracking_id="STYL-20261017-BBBBBB"),
    ])
    db_sync.commit()

    resp = client.get("/admin/analytics", headers=auth("boss@example.com"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_revenue"] == 249.5
    assert body["service_demand"][0] == {"service_id": stage.id, "service_name": "Wedding Stage", "count": 2}
    assert body["service_demand"][1]["count"] == 1


def test_analytics_on_empty_store(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    resp = client.get("/admin/analytics", headers=auth("boss@example.com"))
    assert resp.json() == {"total_revenue": 0.0, "service_demand": []}


def test_analytics_requires_admin(client):
    resp = client.get("/admin/analytics", headers=auth("ana@example.com"))
    assert resp.status_code == 403
