import os
import threading
from typing import Any, Dict, Generator, List
from unittest.mock import MagicMock

import pytest

# Le lifespan ne doit pas tenter de joindre Redis pendant les tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from fastapi.testclient import TestClient

from billetterie.app import app as fastapi_app
from billetterie.payments import metadata as meta
from billetterie.payments.stripe_client import CheckoutSession
from billetterie.tickets import repository as tickets_repository

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Aucun test ne doit joindre Supabase
@pytest.fixture(autouse=True)
def _no_supabase(monkeypatch):
    monkeypatch.setattr("billetterie.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("billetterie.infra.supabase_client.get_service_supabase", lambda: MagicMock())


EVENT = {"id": 1, "name": "Festa Junina", "date_time": "2026-06-20T19:00:00", "location": "APAE"}
TICKET_TYPES = [
    {"id": 1, "event_id": 1, "name": "Padrão", "description": "Entrada padrão", "price": 50.0, "quantity": 10},
    {"id": 2, "event_id": 1, "name": "VIP", "description": "Área VIP", "price": "120.50", "quantity": 3},
]

@pytest.fixture
def catalog(monkeypatch):
    """Evénement 1 avec deux types de billets (prix/stock lus par le checkout)."""
    state = {"event": dict(EVENT), "ticket_types": [dict(tt) for tt in TICKET_TYPES]}
    monkeypatch.setattr(
        "billetterie.events.repository.get_event",
        lambda event_id: state["event"] if str(event_id) == str(state["event"]["id"]) else None,
    )
    monkeypatch.setattr(
        "billetterie.events.repository.get_ticket_types",
        lambda event_id: state["ticket_types"] if str(event_id) == str(state["event"]["id"]) else [],
    )
    return state


class FakeStripe:
    """Sessions Checkout en mémoire (create/retrieve)."""

    def __init__(self):
        self.sessions: Dict[str, CheckoutSession] = {}
        self.created: List[Dict[str, Any]] = []

    def create_session(self, **kwargs) -> CheckoutSession:
        self.created.append(kwargs)
        sid = f"cs_test_{len(self.created)}"
        session = CheckoutSession(
            id=sid,
            url=f"https://checkout.stripe.test/{sid}",
            payment_status="unpaid",
            metadata=dict(kwargs.get("metadata") or {}),
        )
        self.sessions[sid] = session
        return session

    def get_session(self, session_id: str) -> CheckoutSession:
        return self.sessions[session_id]

    def pay(self, session_id: str) -> None:
        s = self.sessions[session_id]
        self.sessions[session_id] = CheckoutSession(id=s.id, url=s.url, payment_status="paid", metadata=s.metadata)

    def add_paid_session(self, session_id: str, metadata: Dict[str, str], payment_status: str = "paid") -> None:
        self.sessions[session_id] = CheckoutSession(id=session_id, payment_status=payment_status, metadata=metadata)

@pytest.fixture
def fake_stripe(monkeypatch):
    fake = FakeStripe()
    monkeypatch.setattr("billetterie.payments.stripe_client.create_session", fake.create_session)
    monkeypatch.setattr("billetterie.payments.stripe_client.get_session", fake.get_session)
    return fake


class FakeTicketStore:
    """
    Table 'tickets' en mémoire: unicité de qr_code_id et insertion tout-ou-rien,
    comme la fonction SQL issue_session_tickets.
    """

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.insert_calls = 0
        self._lock = threading.Lock()
        self._next_id = 1

    def find_tickets_by_session(self, session_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(r) for r in self.rows if r["qr_code_id"].startswith(f"{session_id}_")]

    def insert_tickets(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        with self._lock:
            self.insert_calls += 1
            existing = {r["qr_code_id"] for r in self.rows}
            if any(r["qr_code_id"] in existing for r in rows):
                raise tickets_repository.DuplicateTickets("duplicate key value violates unique constraint")
            created = []
            for r in rows:
                row = {**r, "id": self._next_id}
                self._next_id += 1
                self.rows.append(row)
                created.append(dict(row))
            return created

    def get_ticket_by_code(self, code: str):
        with self._lock:
            return next((dict(r) for r in self.rows if r["qr_code_id"] == code), None)

@pytest.fixture
def ticket_store(monkeypatch):
    store = FakeTicketStore()
    monkeypatch.setattr("billetterie.tickets.repository.find_tickets_by_session", store.find_tickets_by_session)
    monkeypatch.setattr("billetterie.tickets.repository.insert_tickets", store.insert_tickets)
    monkeypatch.setattr("billetterie.tickets.repository.get_ticket_by_code", store.get_ticket_by_code)
    return store

@pytest.fixture
def order_metadata():
    """Metadata d'une commande de 2 billets 'Padrão' à 50.00 (total 100.00)."""
    line = meta.TicketLine(
        ticket_type_id=1, ticket_type_name="Padrão", quantity=2, unit_price="50.00", total_price="100.00"
    )
    return meta.make_metadata(
        event={"id": 1, "name": "Festa Junina"},
        lines=[line],
        total=line.total_price,
        customer_email="teste@email.com",
    )
