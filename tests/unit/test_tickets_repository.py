from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from billetterie.errors import InternalError
from billetterie.tickets import repository
from billetterie.tickets.codes import belongs_to_session, redemption_code


def _client_returning(data):
    client = MagicMock()
    chain = client.table.return_value.select.return_value
    chain.like.return_value.order.return_value.execute.return_value = MagicMock(data=data)
    chain.eq.return_value.limit.return_value.execute.return_value = MagicMock(data=data)
    client.rpc.return_value.execute.return_value = MagicMock(data=data)
    return client


def test_redemption_codes_are_deterministic():
    assert redemption_code("cs_test_a1", 3, 0) == "cs_test_a1_3_0"
    assert belongs_to_session("cs_test_a1_3_0", "cs_test_a1")
    assert not belongs_to_session("cs_test_a10_3_0", "cs_test_a1")


def test_like_escape():
    assert repository._like_escape("cs_test_1%") == "cs\\_test\\_1\\%"


def test_find_tickets_by_session_filters_prefix(monkeypatch):
    rows = [
        {"id": 1, "qr_code_id": "cs_1_1_0"},
        {"id": 2, "qr_code_id": "cs_10_1_0"},
        {"id": 3, "qr_code_id": "cs_1_2_0"},
    ]
    client = _client_returning(rows)
    monkeypatch.setattr("billetterie.infra.supabase_client.get_service_supabase", lambda: client)

    found = repository.find_tickets_by_session("cs_1")

    assert [r["id"] for r in found] == [1, 3]
    client.table.assert_called_with("tickets")
    client.table.return_value.select.return_value.like.assert_called_with("qr_code_id", "cs\\_1\\_%")


def test_find_tickets_store_failure(monkeypatch):
    client = MagicMock()
    client.table.side_effect = RuntimeError("boom")
    monkeypatch.setattr("billetterie.infra.supabase_client.get_service_supabase", lambda: client)
    with pytest.raises(InternalError):
        repository.find_tickets_by_session("cs_1")


def test_get_ticket_by_code(monkeypatch):
    client = _client_returning([{"id": 9, "qr_code_id": "cs_1_1_0"}])
    monkeypatch.setattr("billetterie.infra.supabase_client.get_service_supabase", lambda: client)
    assert repository.get_ticket_by_code("cs_1_1_0")["id"] == 9

    empty = _client_returning([])
    monkeypatch.setattr("billetterie.infra.supabase_client.get_service_supabase", lambda: empty)
    assert repository.get_ticket_by_code("inconnu") is None


def test_insert_tickets_calls_issuance_function(monkeypatch):
    rows = [{"ticket_type_id": 1, "associate_id": "u", "status": "not used", "qr_code_id": "cs_1_1_0"}]
    client = _client_returning([{**rows[0], "id": 1}])
    monkeypatch.setattr("billetterie.infra.supabase_client.get_service_supabase", lambda: client)

    created = repository.insert_tickets(rows)

    assert created[0]["id"] == 1
    client.rpc.assert_called_once_with("issue_session_tickets", {"p_tickets": rows})


def test_insert_tickets_unique_violation_is_duplicate(monkeypatch):
    client = MagicMock()
    client.rpc.return_value.execute.side_effect = APIError({
        "code": "23505",
        "message": 'duplicate key value violates unique constraint "tickets_qr_code_id_key"',
        "details": None,
        "hint": None,
    })
    monkeypatch.setattr("billetterie.infra.supabase_client.get_service_supabase", lambda: client)
    with pytest.raises(repository.DuplicateTickets):
        repository.insert_tickets([{"qr_code_id": "cs_1_1_0"}])


@pytest.mark.parametrize("error", [
    APIError({"code": "42501", "message": "permission denied", "details": None, "hint": None}),
    RuntimeError("timeout"),
])
def test_insert_tickets_other_errors_are_internal(monkeypatch, error):
    client = MagicMock()
    client.rpc.return_value.execute.side_effect = error
    monkeypatch.setattr("billetterie.infra.supabase_client.get_service_supabase", lambda: client)
    with pytest.raises(InternalError):
        repository.insert_tickets([{"qr_code_id": "cs_1_1_0"}])
