"""
Émission des billets d'une session payée (réconciliation).

Cycle de vie d'une session vue d'ici:
    unpaid -> paid-unreconciled -> paid-reconciled (terminal)
Rejouer la réconciliation d'une session déjà émise renvoie les billets
existants (statut 'already_processed') sans jamais réémettre.
"""
from dataclasses import dataclass
from typing import Any, Dict, List
import logging

from billetterie.errors import ALREADY_PROCESSED, ISSUED, InternalError, InvalidRequest, PaymentNotConfirmed
from billetterie.payments import metadata as meta
from billetterie.payments import stripe_client
from billetterie.tickets import repository
from billetterie.tickets.codes import redemption_code

logger = logging.getLogger(__name__)

NOT_USED = "not used"


@dataclass(frozen=True)
class IssuanceResult:
    status: str
    session_id: str
    tickets: List[Dict[str, Any]]
    event: Dict[str, Any]

    @property
    def already_processed(self) -> bool:
        return self.status == ALREADY_PROCESSED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "session_id": self.session_id,
            "tickets": self.tickets,
            "event": self.event,
        }

def build_ticket_rows(session_id: str, order: meta.OrderMetadata, purchaser_id: Any) -> List[Dict[str, Any]]:
    """
    Une ligne par unité achetée, code dérivé de (session, type, rang).
    Le rang court par type de billet sur toute la commande: deux lignes d'un
    même type ne produisent jamais le même code.
    """
    rows: List[Dict[str, Any]] = []
    next_index: Dict[str, int] = {}
    for line in order.lines:
        key = str(line.ticket_type_id)
        start = next_index.get(key, 0)
        next_index[key] = start + line.quantity
        for i in range(start, start + line.quantity):
            rows.append({
                "ticket_type_id": line.ticket_type_id,
                "associate_id": purchaser_id,
                "status": NOT_USED,
                "qr_code_id": redemption_code(session_id, line.ticket_type_id, i),
            })
    return rows

def _present(rows: List[Dict[str, Any]], order: meta.OrderMetadata) -> List[Dict[str, Any]]:
    tickets: List[Dict[str, Any]] = []
    for row in rows:
        line = order.line_for(row.get("ticket_type_id"))
        tickets.append({
            "id": row.get("id"),
            "ticket_type_id": row.get("ticket_type_id"),
            "ticket_type_name": line.ticket_type_name if line else None,
            "redemption_code": row.get("qr_code_id"),
        })
    return tickets

def _replay(session_id: str, order: meta.OrderMetadata, existing: List[Dict[str, Any]]) -> IssuanceResult:
    logger.info("tickets.reconcile already_processed session_id=%s tickets=%s", session_id, len(existing))
    return IssuanceResult(ALREADY_PROCESSED, session_id, _present(existing, order), order.event_summary())

def reconcile_session(session_id: str, purchaser_id: Any) -> IssuanceResult:
    """
    Convertit une session Stripe payée en billets, exactement une fois.
    1) session Stripe: payment_status doit valoir 'paid' (PaymentNotConfirmed sinon)
    2) idempotence: billets existants pour la session -> already_processed
    3) commande relue depuis la metadata (jamais depuis le stock courant)
    4) un billet par unité, insérés en une transaction
    Une course perdue contre un appel concurrent (violation d'unicité) relit
    les billets du gagnant et répond already_processed.
    """
    session_id = session_id.strip() if isinstance(session_id, str) else ""
    if not session_id or purchaser_id in (None, ""):
        raise InvalidRequest("sessionId et associateId sont obligatoires")

    session = stripe_client.get_session(session_id)
    if not session.is_paid:
        raise PaymentNotConfirmed(
            "Paiement non confirmé",
            {"session_id": session_id, "payment_status": session.payment_status},
        )

    existing = repository.find_tickets_by_session(session_id)
    order = meta.parse_metadata(session.metadata)
    if existing:
        return _replay(session_id, order, existing)

    rows = build_ticket_rows(session_id, order, purchaser_id)
    try:
        created = repository.insert_tickets(rows)
    except repository.DuplicateTickets as e:
        winner = repository.find_tickets_by_session(session_id)
        if not winner:
            # Conflit sans billets de la session: codes en collision dans le lot lui-même
            logger.error("tickets.reconcile duplicate without tickets session_id=%s rows=%s", session_id, len(rows))
            raise InternalError("Emission des billets impossible", {"session_id": session_id}) from e
        return _replay(session_id, order, winner)

    logger.info(
        "tickets.reconcile issued session_id=%s event_id=%s tickets=%s",
        session_id, order.event_id, len(created),
    )
    return IssuanceResult(ISSUED, session_id, _present(created, order), order.event_summary())

def list_session_tickets(session_id: str) -> List[Dict[str, Any]]:
    """Billets émis pour une session (sans interroger Stripe)."""
    return [
        {
            "id": row.get("id"),
            "ticket_type_id": row.get("ticket_type_id"),
            "status": row.get("status"),
            "redemption_code": row.get("qr_code_id"),
            "created_at": row.get("created_at"),
        }
        for row in repository.find_tickets_by_session(session_id)
    ]
