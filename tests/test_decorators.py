from styledecor.models import Decorator, DecoratorApplication, User

from support import auth, count, fetch, make_user, refresh

PROFILE = {
    "name": "Rafi Ahmed",
    "phone": "+8801700000000",
    "specialty": "wedding",
    "experience_years": 4,
    "bio": "Stage and floral work",
}


def _apply(client, email="rafi@example.com", **overrides):
    return client.post("/decorator-applications", json={**PROFILE, **overrides}, headers=auth(email))


def _review(client, application_id, status, admin="boss@example.com"):
    return client.patch(
        f"/decorator-applications/{application_id}/review",
        json={"status": status},
        headers=auth(admin),
    )


def _decorator(db, email):
    refresh(db)
    return db.query(Decorator).filter_by(email=email).one_or_none()


def test_apply_uses_token_email(client):
    resp = _apply(client)
    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "rafi@example.com"
    assert body["status"] == "pending"
    assert body["reviewed_at"] is None


def test_apply_rejects_unknown_fields(client):
    resp = _apply(client, status="approved")
    assert resp.status_code == 400


def test_second_pending_application_is_rejected(client, db_sync):
    _apply(client)
    resp = _apply(client)
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidInput"
    assert count(db_sync, DecoratorApplication) == 1


def test_apply_requires_authentication(client):
    resp = client.post("/decorator-applications", json=PROFILE)
    assert resp.status_code == 401


def test_admin_lists_applications_by_status(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    first = _apply(client, email="rafi@example.com").json()
    _apply(client, email="mina@example.com", name="Mina")
    _review(client, first["id"], "rejected")

    everything = client.get("/decorator-applications", headers=auth("boss@example.com"))
    assert len(everything.json()) == 2

    pending = client.get("/decorator-applications", params={"status": "pending"}, headers=auth("boss@example.com"))
    assert [a["email"] for a in pending.json()] == ["mina@example.com"]

    bad = client.get("/decorator-applications", params={"status": "maybe"}, headers=auth("boss@example.com"))
    assert bad.status_code == 400


def test_non_admin_cannot_list_applications(client):
    resp = client.get("/decorator-applications", headers=auth("rafi@example.com"))
    assert resp.status_code == 403


def test_approval_creates_decorator_and_promotes_user(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    make_user(db_sync, "rafi@example.com")
    application = _apply(client).json()

    resp = _review(client, application["id"], "approved")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "approved"
    assert body["reviewed_by"] == "boss@example.com"
    assert body["reviewed_at"] is not None

    decorator = _decorator(db_sync, "rafi@example.com")
    assert decorator.name == "Rafi Ahmed"
    assert decorator.specialty == "wedding"
    assert decorator.status == "active"
    assert decorator.earnings == 0
    assert decorator.rating == 5

    user = db_sync.query(User).filter_by(email="rafi@example.com").one()
    assert user.role == "decorator"


def test_approval_creates_missing_user_record(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    application = _apply(client).json()

    _review(client, application["id"], "approved")

    refresh(db_sync)
    user = db_sync.query(User).filter_by(email="rafi@example.com").one()
    assert user.role == "decorator"
    assert user.name == "Rafi Ahmed"


def test_reapproval_keeps_earnings_and_rating(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    first = _apply(client).json()
    _review(client, first["id"], "approved")

    decorator = _decorator(db_sync, "rafi@example.com")
    decorator.earnings = 1200.0
    decorator.rating = 4.2
    db_sync.commit()

    second = _apply(client, specialty="birthday", bio="Now doing birthdays").json()
    _review(client, second["id"], "approved")

    updated = _decorator(db_sync, "rafi@example.com")
    assert updated.id == decorator.id
    assert updated.specialty == "birthday"
    assert updated.bio == "Now doing birthdays"
    assert updated.earnings == 1200.0
    assert updated.rating == 4.2
    assert count(db_sync, Decorator) == 1


def test_rejection_creates_no_decorator(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    make_user(db_sync, "rafi@example.com")
    application = _apply(client).json()

    resp = _review(client, application["id"], "rejected")
    assert resp.json()["status"] == "rejected"
    assert _decorator(db_sync, "rafi@example.com") is None
    refresh(db_sync)
    assert db_sync.query(User).filter_by(email="rafi@example.com").one().role == "user"


def test_reviewed_application_cannot_be_reviewed_again(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    make_user(db_sync, "rafi@example.com")
    application = _apply(client).json()
    _review(client, application["id"], "approved")

    resp = _review(client, application["id"], "rejected")
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidStatus"

    assert fetch(db_sync, DecoratorApplication, application["id"]).status == "approved"
    assert _decorator(db_sync, "rafi@example.com").status == "active"
    assert db_sync.query(User).filter_by(email="rafi@example.com").one().role == "decorator"
    listed = client.get("/decorators").json()
    assert [d["email"] for d in listed] == ["rafi@example.com"]


def test_review_with_unknown_decision(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    application = _apply(client).json()

    resp = _review(client, application["id"], "maybe")
    assert resp.status_code == 400
    assert fetch(db_sync, DecoratorApplication, application["id"]).status == "pending"


def test_review_unknown_application(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    resp = _review(client, "6f1c1d1e-0000-4000-8000-000000000000", "approved")
    assert resp.status_code == 404


def test_public_decorator_listing_filters(client, db_sync):
    db_sync.add_all([
        Decorator(email="a@example.com", name="Asha", specialty="wedding", rating=4.0),
        Decorator(email="b@example.com", name="Bilal", specialty="birthday", rating=4.9),
        Decorator(email="c@example.com", name="Chandra", specialty="wedding", status="inactive"),
    ])
    db_sync.commit()

    everyone = client.get("/decorators").json()
    assert [d["email"] for d in everyone] == ["b@example.com", "a@example.com"]

    weddings = client.get("/decorators", params={"specialty": "wedding"}).json()
    assert [d["name"] for d in weddings] == ["Asha"]

    by_name = client.get("/decorators", params={"name": "bil"}).json()
    assert [d["name"] for d in by_name] == ["Bilal"]


def test_admin_creates_decorator_directly(client, db_sync):
    make_user(db_sync, "boss@example.com", role="admin")
    payload = {"email": "dina@example.com", "name": "Dina", "specialty": "corporate"}

    resp = client.post("/decorators", json=payload, headers=auth("boss@example.com"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["earnings"] == 0
    assert body["rating"] == 5
    assert body["status"] == "active"

    dup = client.post("/decorators", json=payload, headers=auth("boss@example.com"))
    assert dup.status_code == 400


def test_decorator_bookings_requires_decorator_role(client, db_sync):
    make_user(db_sync, "ana@example.com")
    resp = client.get("/decorator/bookings", headers=auth("ana@example.com", role="decorator"))
    assert resp.status_code == 403
