"""
Endpoints API pour Tickets: billets émis d'une session et QR code d'un billet.
- Le QR encode le code de rédemption (qr_code_id) du billet.
"""
from typing import Any, Dict, List
from fastapi import APIRouter

from billetterie.errors import NotFound
from billetterie.tickets import repository as tickets_repository
from billetterie.tickets.service import list_session_tickets
from billetterie.utils.qrcode_utils import generate_qr_code

router = APIRouter(prefix="/api/v1/tickets", tags=["Tickets"])

@router.get("/session/{session_id}", response_model=List[Dict[str, Any]])
def tickets_for_session(session_id: str):
    """
    Liste les billets émis pour une session Stripe.
    - Retour: [] si la session n'a pas (encore) été réconciliée.
    """
    return list_session_tickets(session_id)

@router.get("/{redemption_code}/qrcode")
def get_ticket_qrcode(redemption_code: str):
    """
    Génère le QR code d'un billet existant.
    - Retour: {"qr_code": "<data:image/png;base64,...>"}
    - 404 si aucun billet ne porte ce code.
    """
    ticket = tickets_repository.get_ticket_by_code(redemption_code)
    if not ticket:
        raise NotFound("Billet introuvable", {"redemption_code": redemption_code})
    return {"redemption_code": redemption_code, "qr_code": generate_qr_code(redemption_code)}
