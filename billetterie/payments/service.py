"""
Cas d'usage 'payments': orchestre repository, cart, stripe, metadata.

build_event_checkout est le constructeur de commande: il valide le panier
contre le stock lu, calcule le total et crée la session Stripe. Aucun
billet ni aucun stock n'est modifié à ce stade.
"""
from typing import Any, Dict, Optional
import logging

from billetterie.config import (
    CHECKOUT_ALLOW_PROMOTION_CODES,
    CHECKOUT_CURRENCY,
    CHECKOUT_LOCALE,
    CHECKOUT_PAYMENT_METHOD_TYPES,
    STRIPE_CANCEL_URL,
    STRIPE_SUCCESS_URL,
)
from billetterie.errors import InvalidRequest, NotFound
from billetterie.events import repository as events_repository
from . import cart as cart_logic
from . import metadata as meta
from . import stripe_client

logger = logging.getLogger(__name__)

def _with_query(url: str, query: str) -> str:
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{query}"

def _checkout_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"locale": CHECKOUT_LOCALE, "payment_method_types": CHECKOUT_PAYMENT_METHOD_TYPES}
    if CHECKOUT_ALLOW_PROMOTION_CODES:
        options["allow_promotion_codes"] = True
    return options

def build_event_checkout(
    *,
    event_id: Any,
    tickets: Any,
    customer_email: Any,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Prépare la session Stripe d'achat de billets pour un événement.
    Contrôles (le premier échec est rapporté):
      1) événement existant (NotFound)
      2) au moins un type de billet (NotFound)
      3) panier non vide, email présent (InvalidRequest)
      4-5) lignes valides, types de l'événement, stock suffisant (InvalidRequest)
      6) total > 0 (InvalidRequest)
    Retour: {id, url, event, tickets, total_amount, currency}.
    """
    if event_id in (None, ""):
        raise InvalidRequest("eventId est obligatoire")

    event = events_repository.get_event(event_id)
    if not event:
        raise NotFound("Evénement introuvable", {"event_id": event_id})

    ticket_types = events_repository.get_ticket_types(event_id)
    if not ticket_types:
        raise NotFound("Aucun type de billet pour cet événement", {"event_id": event_id})

    if not isinstance(tickets, list) or not tickets:
        raise InvalidRequest("tickets est obligatoire et doit être un tableau non vide")
    email = cart_logic.require_email(customer_email)
    basket = cart_logic.parse_basket(tickets)

    order = cart_logic.price_basket(event, ticket_types, basket, email)
    line_items = cart_logic.to_line_items(order, ticket_types, CHECKOUT_CURRENCY)
    metadata = meta.make_metadata(event=event, lines=list(order.lines), total=order.total, customer_email=email)

    resolved_success = success_url or STRIPE_SUCCESS_URL
    resolved_cancel = cancel_url or STRIPE_CANCEL_URL
    session = stripe_client.create_session(
        line_items=line_items,
        success_url=_with_query(resolved_success, f"session_id={{CHECKOUT_SESSION_ID}}&event_id={event.get('id')}"),
        cancel_url=resolved_cancel,
        customer_email=email,
        metadata=metadata,
        **_checkout_options(),
    )
    logger.info(
        "payments.build_event_checkout session_id=%s event_id=%s lines=%s total=%s",
        session.id, event.get("id"), len(order.lines), order.total,
    )
    return {
        "id": session.id,
        "url": session.url,
        "event": {
            "id": event.get("id"),
            "name": event.get("name"),
            "date_time": event.get("date_time"),
            "location": event.get("location"),
        },
        "tickets": [line.to_dict() for line in order.lines],
        "total_amount": float(order.total),
        "currency": CHECKOUT_CURRENCY.upper(),
    }

def create_checkout_session(
    *,
    line_items: Any,
    mode: str = "payment",
    customer_email: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Checkout générique (sans inventaire): simple relais vers Stripe.
    Retour: {id, url}.
    """
    items = cart_logic.normalize_line_items(line_items, CHECKOUT_CURRENCY)
    session = stripe_client.create_session(
        line_items=items,
        mode=mode or "payment",
        success_url=_with_query(success_url or STRIPE_SUCCESS_URL, "session_id={CHECKOUT_SESSION_ID}"),
        cancel_url=cancel_url or STRIPE_CANCEL_URL,
        customer_email=customer_email,
        metadata={str(k): str(v) for k, v in (metadata or {}).items()},
        **_checkout_options(),
    )
    return {"id": session.id, "url": session.url}

def create_payment_intent(*, amount: Any, currency: Optional[str] = None) -> Dict[str, str]:
    """PaymentIntent (Stripe Elements): amount entier en centimes, strictement positif."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidRequest("amount doit être un entier positif (centimes)", {"amount": amount})
    client_secret = stripe_client.create_payment_intent(
        amount=amount, currency=(currency or CHECKOUT_CURRENCY).lower()
    )
    return {"clientSecret": client_secret}
