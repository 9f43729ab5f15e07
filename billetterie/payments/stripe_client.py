"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
La session Checkout est exposée comme un handle typé (CheckoutSession),
jamais mise en cache localement: Stripe reste la source de vérité.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

import stripe

from billetterie.config import STRIPE_SECRET_KEY, STRIPE_TIMEOUT_SECONDS
from billetterie.errors import InternalError

logger = logging.getLogger(__name__)

PAID = "paid"

def _field(obj: Any, name: str) -> Any:
    # StripeObject n'est plus un dict dans les SDK récents: accès par attribut
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)

def _as_dict(obj: Any) -> Dict[str, Any]:
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return dict(obj)
    to_dict = getattr(obj, "to_dict", None)
    return dict(to_dict()) if callable(to_dict) else {}

@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: Optional[str] = None
    payment_status: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PAID

    @classmethod
    def from_stripe(cls, session: Any) -> "CheckoutSession":
        meta = _as_dict(_field(session, "metadata"))
        return cls(
            id=str(_field(session, "id") or ""),
            url=_field(session, "url"),
            payment_status=str(_field(session, "payment_status") or ""),
            metadata={str(k): str(v) for k, v in meta.items()},
        )

# module billetterie.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY.
    - Client HTTP borné par STRIPE_TIMEOUT_SECONDS, sans retry implicite:
      l'appelant rejoue l'opération complète (idempotente côté émission).
    """
    if not STRIPE_SECRET_KEY:
        raise InternalError("STRIPE_SECRET_KEY manquant")
    stripe.api_key = STRIPE_SECRET_KEY
    stripe.max_network_retries = 0
    if not isinstance(stripe.default_http_client, stripe.RequestsClient):
        stripe.default_http_client = stripe.RequestsClient(timeout=STRIPE_TIMEOUT_SECONDS)
    return stripe

def create_session(
    *,
    line_items: List[Dict[str, Any]],
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, str],
    customer_email: Optional[str] = None,
    mode: str = "payment",
    **options: Any,
) -> CheckoutSession:
    """
    Crée une session Stripe Checkout.
    - line_items: lignes Stripe (price/quantity ou price_data)
    - metadata: map str -> str stockée et restituée telle quelle par Stripe
    - options: paramètres additionnels (locale, payment_method_types, ...)
    Erreurs Stripe/réseau: InternalError (message interne non exposé).
    """
    require_stripe()
    params: Dict[str, Any] = {
        "mode": mode,
        "line_items": line_items,
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
        **options,
    }
    if customer_email:
        params["customer_email"] = customer_email
    try:
        session = stripe.checkout.Session.create(**params)
    except stripe.StripeError as e:
        logger.exception("payments.stripe_client.create_session failed items=%s", len(line_items))
        raise InternalError("Création de la session Stripe impossible") from e
    return CheckoutSession.from_stripe(session)

def get_session(session_id: str) -> CheckoutSession:
    """
    Récupère une session Stripe Checkout par son identifiant.
    Retour: handle incluant id, payment_status et metadata.
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.retrieve(session_id)
    except stripe.StripeError as e:
        logger.exception("payments.stripe_client.get_session failed session_id=%s", session_id)
        raise InternalError("Lecture de la session Stripe impossible") from e
    return CheckoutSession.from_stripe(session)

def create_payment_intent(*, amount: int, currency: str) -> str:
    """PaymentIntent avec moyens de paiement automatiques (Stripe Elements); retourne le client_secret."""
    require_stripe()
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount,
            currency=currency,
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError as e:
        logger.exception("payments.stripe_client.create_payment_intent failed amount=%s currency=%s", amount, currency)
        raise InternalError("Création du PaymentIntent impossible") from e
    return str(_field(intent, "client_secret") or "")
