from sqlalchemy import func, select
from sqlalchemy.orm import Session

from styledecor.clients import CheckoutSession
from styledecor.errors import NotFound
from styledecor.models import Service, User
from styledecor.security import issue_token


class FakeProcessor:
    """In-memory stand-in for the hosted checkout provider."""

    def __init__(self):
        self.sessions: dict[str, CheckoutSession] = {}
        self.created: list[dict] = []

    async def create_session(self, **kwargs) -> CheckoutSession:
        self.created.append(kwargs)
        sid = f"cs_test_{len(self.created)}"
        session = CheckoutSession(
            id=sid,
            url=f"https://checkout.test/pay/{sid}",
            payment_status="unpaid",
            amount_total=kwargs["amount"],
            currency=kwargs["currency"],
            customer_email=kwargs["customer_email"],
            metadata=dict(kwargs["metadata"]),
        )
        self.sessions[sid] = session
        return session

    def pay(self, session_id: str, intent: str = "pi_test_1") -> None:
        session = self.sessions[session_id]
        session.payment_status = "paid"
        session.payment_intent = intent

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        if session_id not in self.sessions:
            raise NotFound("Checkout session not found")
        return self.sessions[session_id]


def auth(email: str, role: str = "user") -> dict:
    return {"Authorization": f"Bearer {issue_token(email, role)}"}


def make_user(db: Session, email: str, role: str = "user", name: str | None = None) -> User:
    user = User(email=email, role=role, name=name or email.split("@")[0])
    db.add(user)
    db.commit()
    return user


def make_service(db: Session, name: str = "Wedding Stage", cost: float = 150.0, **kwargs) -> Service:
    kwargs.setdefault("category", "wedding")
    service = Service(name=name, cost=cost, **kwargs)
    db.add(service)
    db.commit()
    return service


def book(client, email: str, service_id: str, event_date: str = "2026-12-20T18:00:00Z") -> dict:
    resp = client.post(
        "/bookings",
        json={"service_id": service_id, "event_date": event_date, "location": "Dhaka"},
        headers=auth(email),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def refresh(db: Session) -> None:
    """Drop cached rows so the next read sees writes made through the app."""
    db.rollback()
    db.expire_all()


def fetch(db: Session, model, ident):
    refresh(db)
    return db.get(model, ident)


def count(db: Session, model) -> int:
    refresh(db)
    return db.scalar(select(func.count()).select_from(model))
