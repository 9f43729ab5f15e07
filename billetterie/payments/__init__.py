"""
Module 'payments' (feature-first): point d'entrée public.
Réunit logique panier, metadata Stripe, client Stripe et services de checkout.
"""

from .cart import BasketLine, PricedOrder, parse_basket, price_basket, to_line_items, to_minor_units
from .metadata import OrderMetadata, TicketLine, make_metadata, parse_metadata
from .stripe_client import CheckoutSession, create_session, get_session
from .service import build_event_checkout, create_checkout_session, create_payment_intent

__all__ = [
    # cart
    "BasketLine",
    "PricedOrder",
    "parse_basket",
    "price_basket",
    "to_line_items",
    "to_minor_units",
    # metadata
    "OrderMetadata",
    "TicketLine",
    "make_metadata",
    "parse_metadata",
    # stripe
    "CheckoutSession",
    "create_session",
    "get_session",
    # services
    "build_event_checkout",
    "create_checkout_session",
    "create_payment_intent",
]
