"""
Accès aux données 'tickets'.
- insert_tickets: émission d'un lot complet via la fonction SQL
  issue_session_tickets (une transaction: insertion + décrément du stock).
  La contrainte unique sur qr_code_id rejette un lot déjà émis (23505).
- find_tickets_by_session: lecture d'idempotence par préfixe de code.
"""
from typing import Any, Dict, List, Optional
import logging
from postgrest.exceptions import APIError
import billetterie.infra.supabase_client as supabase_client
from billetterie.errors import InternalError
from billetterie.tickets.codes import belongs_to_session, session_prefix

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
TICKET_COLUMNS = "id, ticket_type_id, associate_id, status, qr_code_id, created_at"


class DuplicateTickets(Exception):
    """Au moins un code du lot existe déjà: la session a été émise ailleurs."""


def _like_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

# module billetterie.tickets.repository
def find_tickets_by_session(session_id: str) -> List[Dict[str, Any]]:
    """
    Billets dont le code de rédemption est préfixé par '<session_id>_'.
    - Le filtre LIKE est échappé puis revérifié côté Python.
    - Trié par id (ordre d'insertion).
    """
    pattern = _like_escape(session_prefix(session_id)) + "%"
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("tickets")
            .select(TICKET_COLUMNS)
            .like("qr_code_id", pattern)
            .order("id")
            .execute()
        )
    except Exception as e:
        logger.exception("tickets.repository.find_tickets_by_session failed session_id=%s", session_id)
        raise InternalError("Lecture des billets impossible") from e
    return [row for row in (res.data or []) if belongs_to_session(row.get("qr_code_id") or "", session_id)]

def get_ticket_by_code(code: str) -> Optional[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("tickets")
            .select(TICKET_COLUMNS)
            .eq("qr_code_id", code)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("tickets.repository.get_ticket_by_code failed code=%s", code)
        raise InternalError("Lecture du billet impossible") from e
    rows = res.data or []
    return rows[0] if rows else None

def insert_tickets(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Insère tous les billets d'une session en une seule transaction.
    rows: [{ticket_type_id, associate_id, status, qr_code_id}, ...]
    Retour: lignes créées (avec id généré).
    Erreurs:
      - DuplicateTickets si un code existe déjà (rien n'est inséré)
      - InternalError pour toute autre erreur du store
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .rpc("issue_session_tickets", {"p_tickets": rows})
            .execute()
        )
    except APIError as e:
        if getattr(e, "code", None) == UNIQUE_VIOLATION:
            raise DuplicateTickets(str(e)) from e
        logger.exception("tickets.repository.insert_tickets failed count=%s", len(rows))
        raise InternalError("Emission des billets impossible") from e
    except Exception as e:
        logger.exception("tickets.repository.insert_tickets failed count=%s", len(rows))
        raise InternalError("Emission des billets impossible") from e
    return res.data or []
