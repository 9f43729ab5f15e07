"""
Endpoints API Payments.
- /create-event-checkout: panier de billets d'un événement -> session Stripe
- /confirm-payment: session payée -> billets (idempotent, sans webhook)
- /create-checkout-session: relais générique vers Stripe Checkout
- /create-payment-intent: PaymentIntent pour Stripe Elements
Les corps JSON acceptent camelCase (clients historiques) et snake_case.
Les erreurs métier (InvalidRequest, NotFound, ...) sont rendues par le
handler global (app_setup.exceptions).
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from billetterie.errors import InvalidRequest
from billetterie.payments import service as payments_service
from billetterie.tickets import service as tickets_service
from billetterie.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise InvalidRequest("Corps JSON invalide")
    if not isinstance(body, dict):
        raise InvalidRequest("Corps JSON invalide")
    return body

def _pick(body: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if body.get(k) not in (None, ""):
            return body[k]
    return None

# module billetterie.payments.views
@router.post("/create-event-checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_event_checkout(request: Request):
    """
    Crée une session Checkout Stripe pour des billets d'un événement.
    - Entrée JSON: { "eventId", "tickets": [ {"ticketTypeId", "quantity"} ], "customerEmail",
                     "successUrl"?, "cancelUrl"? }
    - Retour: {id, url, event, tickets, total_amount, currency}
    - Erreurs: 404 événement/types introuvables, 400 panier invalide ou stock insuffisant
    """
    body = await _json_body(request)
    result = payments_service.build_event_checkout(
        event_id=_pick(body, "eventId", "event_id"),
        tickets=_pick(body, "tickets"),
        customer_email=_pick(body, "customerEmail", "customer_email"),
        success_url=_pick(body, "successUrl", "success_url"),
        cancel_url=_pick(body, "cancelUrl", "cancel_url"),
    )
    return JSONResponse(result)

@router.post("/confirm-payment", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
async def confirm_payment(request: Request):
    """
    Alternative sans webhook: vérifie la session Stripe et émet les billets.
    - Entrée JSON: { "sessionId", "associateId" }
    - Retour: {status: "issued"|"already_processed", session_id, tickets, event}
    - Erreurs: 400 si paiement non confirmé, 500 si Stripe/DB indisponible
    - Rejouable sans risque: aucun billet n'est émis deux fois.
    """
    body = await _json_body(request)
    result = tickets_service.reconcile_session(
        _pick(body, "sessionId", "session_id") or "",
        _pick(body, "associateId", "purchaser_id", "purchaserId"),
    )
    return JSONResponse(result.to_dict())

@router.post("/create-checkout-session", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(request: Request):
    """
    Checkout générique: lineItems [{price, quantity}] ou [{name, amount, currency, quantity}].
    - Retour: {id, url}
    """
    body = await _json_body(request)
    result = payments_service.create_checkout_session(
        line_items=_pick(body, "lineItems", "line_items"),
        mode=_pick(body, "mode") or "payment",
        customer_email=_pick(body, "customerEmail", "customer_email"),
        metadata=_pick(body, "metadata"),
        success_url=_pick(body, "successUrl", "success_url"),
        cancel_url=_pick(body, "cancelUrl", "cancel_url"),
    )
    return JSONResponse(result)

@router.post("/create-payment-intent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_payment_intent(request: Request):
    """Retourne {clientSecret} pour un paiement Stripe Elements."""
    body = await _json_body(request)
    return JSONResponse(payments_service.create_payment_intent(amount=body.get("amount"), currency=body.get("currency")))
