"""
Sérialisation/désérialisation des métadonnées Stripe de la commande.

La metadata de session est l'unique source de vérité utilisée à l'émission:
stock et prix peuvent avoir changé entre le checkout et la confirmation.
Elle est relue sous forme typée (pydantic) et validée, jamais propagée brute.

Stripe limite chaque valeur à 500 caractères et la map à 50 clés: le JSON
'ticketDetails' est découpé en 'ticketDetails', 'ticketDetails_1', ...
"""
import json
from decimal import Decimal
from typing import Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from billetterie.errors import InternalError, InvalidRequest

METADATA_VALUE_MAX = 500
MAX_DETAIL_CHUNKS = 45

DETAILS_KEY = "ticketDetails"


class TicketLine(BaseModel):
    """Ligne tarifée d'une commande (un type de billet)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ticket_type_id: Union[int, str] = Field(alias="ticketTypeId")
    ticket_type_name: str = Field(alias="ticketTypeName")
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(alias="unitPrice", ge=0)
    total_price: Decimal = Field(alias="totalPrice", ge=0)

    @model_validator(mode="after")
    def _check_line_total(self) -> "TicketLine":
        if self.total_price != self.unit_price * self.quantity:
            raise ValueError("totalPrice différent de unitPrice x quantity")
        return self

    def to_meta(self) -> Dict[str, object]:
        return {
            "ticketTypeId": self.ticket_type_id,
            "ticketTypeName": self.ticket_type_name,
            "quantity": self.quantity,
            "unitPrice": str(self.unit_price),
            "totalPrice": str(self.total_price),
        }

    def to_dict(self) -> Dict[str, object]:
        return {
            "ticket_type_id": self.ticket_type_id,
            "ticket_type_name": self.ticket_type_name,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "total_price": float(self.total_price),
        }


class OrderMetadata(BaseModel):
    """Commande telle que relue depuis la session Stripe."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    event_id: str = Field(alias="eventId", min_length=1)
    event_name: str = Field(alias="eventName", default="")
    total_amount: Decimal = Field(alias="totalAmount", gt=0)
    customer_email: str = Field(alias="customerEmail", default="")
    lines: List[TicketLine] = Field(alias="ticketDetails", min_length=1)

    @field_validator("lines", mode="before")
    @classmethod
    def _decode_details(cls, v):
        if isinstance(v, str):
            return json.loads(v)
        return v

    @property
    def ticket_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def line_for(self, ticket_type_id) -> Union[TicketLine, None]:
        key = str(ticket_type_id)
        return next((line for line in self.lines if str(line.ticket_type_id) == key), None)

    def event_summary(self) -> Dict[str, str]:
        return {"id": self.event_id, "name": self.event_name}


# module billetterie.payments.metadata
def make_metadata(*, event: Dict[str, object], lines: List[TicketLine], total: Decimal, customer_email: str) -> Dict[str, str]:
    """
    Construit la metadata (str -> str) attachée à la session Checkout.
    - eventId, eventName, totalAmount, customerEmail
    - ticketDetails: JSON compact des lignes, découpé par tranches de 500 caractères
    - InvalidRequest si le panier est trop volumineux pour Stripe
    """
    details = json.dumps([line.to_meta() for line in lines], separators=(",", ":"))
    chunks = [details[i:i + METADATA_VALUE_MAX] for i in range(0, len(details), METADATA_VALUE_MAX)]
    if len(chunks) > MAX_DETAIL_CHUNKS:
        raise InvalidRequest("Panier trop volumineux", {"lines": len(lines)})

    meta: Dict[str, str] = {
        "eventId": str(event.get("id")),
        "eventName": str(event.get("name") or "")[:METADATA_VALUE_MAX],
        "totalAmount": str(total),
        "customerEmail": customer_email,
        DETAILS_KEY: chunks[0],
    }
    for idx, chunk in enumerate(chunks[1:], start=1):
        meta[f"{DETAILS_KEY}_{idx}"] = chunk
    return meta

def _join_details(meta: Dict[str, str]) -> str:
    parts = [meta.get(DETAILS_KEY) or ""]
    idx = 1
    while f"{DETAILS_KEY}_{idx}" in meta:
        parts.append(meta[f"{DETAILS_KEY}_{idx}"])
        idx += 1
    return "".join(parts)

def parse_metadata(meta: Dict[str, str]) -> OrderMetadata:
    """
    Relit la commande depuis la metadata d'une session.
    - Réassemble ticketDetails, valide types et bornes (quantity > 0, total > 0)
    - Vérifie la cohérence: totalPrice = unitPrice x quantity par ligne,
      total = somme des lignes
    - InternalError si la metadata est absente, tronquée ou incohérente
    """
    raw = dict(meta or {})
    raw[DETAILS_KEY] = _join_details(raw)
    try:
        order = OrderMetadata.model_validate(raw)
    except (ValidationError, ValueError) as e:
        raise InternalError("Metadata de session invalide") from e
    if sum((line.total_price for line in order.lines), Decimal("0")) != order.total_amount:
        raise InternalError("Metadata de session incohérente (total)")
    return order
