"""
Logique panier pure (pas de Stripe, pas de DB).
Valide les lignes du panier contre les types de billets lus en base et
calcule les montants en Decimal (jamais en float).
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

from pydantic import EmailStr, TypeAdapter, ValidationError

from billetterie.errors import InvalidRequest
from billetterie.payments.metadata import TicketLine

CENT = Decimal("0.01")

_email_adapter = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class BasketLine:
    ticket_type_id: Any
    quantity: int


@dataclass(frozen=True)
class PricedOrder:
    event: Dict[str, Any]
    lines: Tuple[TicketLine, ...]
    total: Decimal
    customer_email: str

# module billetterie.payments.cart
def to_money(value: Any) -> Decimal:
    """Convertit un prix (str|int|float|Decimal) en Decimal arrondi au centime (half-up)."""
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidRequest("Prix invalide", {"price": str(value)})

def to_minor_units(amount: Decimal) -> int:
    """Montant en centimes, arrondi half-up (unit_amount Stripe)."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        n = int(value.strip())
        return n if n > 0 else None
    return None

def parse_basket(items: Any) -> List[BasketLine]:
    """
    Normalise un panier brut [{ticketTypeId, quantity}, ...] en BasketLine.
    - Accepte ticketTypeId ou ticket_type_id.
    - InvalidRequest si le panier est vide ou si une ligne est invalide
      (quantité entière strictement positive exigée).
    - Les lignes d'un même type de billet sont fusionnées (quantités sommées,
      ordre de première apparition): une ligne par type.
    """
    if not isinstance(items, list) or not items:
        raise InvalidRequest("tickets est obligatoire et doit être un tableau non vide")
    merged: Dict[str, BasketLine] = {}
    for idx, it in enumerate(items):
        it = it if isinstance(it, dict) else {}
        ticket_type_id = it.get("ticketTypeId", it.get("ticket_type_id"))
        quantity = _positive_int(it.get("quantity"))
        if ticket_type_id in (None, "") or quantity is None:
            raise InvalidRequest(
                "Chaque ticket doit avoir ticketTypeId et quantity valides",
                {"line": idx, "ticket_type_id": ticket_type_id, "quantity": it.get("quantity")},
            )
        key = str(ticket_type_id)
        if key in merged:
            quantity += merged[key].quantity
            ticket_type_id = merged[key].ticket_type_id
        merged[key] = BasketLine(ticket_type_id=ticket_type_id, quantity=quantity)
    return list(merged.values())

def require_email(email: Any) -> str:
    """InvalidRequest si l'email acheteur est absent ou mal formé."""
    if not email or not isinstance(email, str):
        raise InvalidRequest("customerEmail est obligatoire")
    try:
        return str(_email_adapter.validate_python(email.strip()))
    except ValidationError:
        raise InvalidRequest("customerEmail invalide", {"customer_email": email})

def price_basket(
    event: Dict[str, Any],
    ticket_types: List[Dict[str, Any]],
    basket: List[BasketLine],
    customer_email: str,
) -> PricedOrder:
    """
    Tarifie le panier contre les types de billets de l'événement.
    Pour chaque ligne, dans l'ordre:
      1) le type de billet doit appartenir à l'événement
      2) la quantité ne doit pas dépasser le stock lu (contrôle best-effort)
    Puis le total doit être strictement positif.
    """
    by_id = {str(tt.get("id")): tt for tt in ticket_types}
    lines: List[TicketLine] = []
    total = Decimal("0.00")
    for bl in basket:
        tt = by_id.get(str(bl.ticket_type_id))
        if not tt:
            raise InvalidRequest(
                f"Type de billet {bl.ticket_type_id} introuvable pour cet événement",
                {"ticket_type_id": bl.ticket_type_id},
            )
        available = int(tt.get("quantity") or 0)
        if bl.quantity > available:
            raise InvalidRequest(
                f"Quantité demandée ({bl.quantity}) supérieure au stock disponible ({available}) pour {tt.get('name')}",
                {"ticket_type_id": tt.get("id"), "requested": bl.quantity, "available": available},
            )
        unit_price = to_money(tt.get("price") or 0)
        line_total = unit_price * bl.quantity
        total += line_total
        lines.append(TicketLine(
            ticket_type_id=tt.get("id"),
            ticket_type_name=str(tt.get("name") or ""),
            quantity=bl.quantity,
            unit_price=unit_price,
            total_price=line_total,
        ))
    if total <= 0:
        raise InvalidRequest("Le montant total doit être supérieur à zéro", {"total_amount": str(total)})
    return PricedOrder(event=event, lines=tuple(lines), total=total, customer_email=customer_email)

def to_line_items(order: PricedOrder, ticket_types: List[Dict[str, Any]], currency: str) -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe: une ligne price_data par ligne de panier,
    unit_amount en centimes, nom "<événement> - <type de billet>".
    """
    by_id = {str(tt.get("id")): tt for tt in ticket_types}
    event_id = str(order.event.get("id"))
    event_name = str(order.event.get("name") or "")
    line_items: List[Dict[str, Any]] = []
    for line in order.lines:
        tt = by_id.get(str(line.ticket_type_id)) or {}
        product_data: Dict[str, Any] = {
            "name": f"{event_name} - {line.ticket_type_name}",
            "metadata": {
                "eventId": event_id,
                "ticketTypeId": str(line.ticket_type_id),
                "eventName": event_name,
            },
        }
        # Stripe refuse une description vide
        if tt.get("description"):
            product_data["description"] = str(tt["description"])
        line_items.append({
            "price_data": {
                "currency": currency,
                "product_data": product_data,
                "unit_amount": to_minor_units(line.unit_price),
            },
            "quantity": line.quantity,
        })
    return line_items

def normalize_line_items(items: Any, default_currency: str) -> List[Dict[str, Any]]:
    """
    Normalise des lignes libres (checkout générique):
    - {"price": "<price_id>", "quantity"} -> prix enregistré Stripe
    - {"name", "amount" (centimes), "currency"?, "quantity"} -> price_data dynamique
    - quantity par défaut: 1. InvalidRequest si aucune ligne.
    """
    normalized: List[Dict[str, Any]] = []
    for it in items if isinstance(items, list) else []:
        if not isinstance(it, dict):
            continue
        quantity = _positive_int(it.get("quantity")) or 1
        if it.get("price"):
            normalized.append({"price": it["price"], "quantity": quantity})
            continue
        amount = _positive_int(it.get("amount"))
        if amount is None or not it.get("name"):
            raise InvalidRequest("Ligne invalide: name et amount (centimes) requis", {"item": it})
        normalized.append({
            "price_data": {
                "currency": (it.get("currency") or default_currency).lower(),
                "product_data": {"name": str(it["name"])},
                "unit_amount": amount,
            },
            "quantity": quantity,
        })
    if not normalized:
        raise InvalidRequest("lineItems est obligatoire et ne peut pas être vide")
    return normalized
