"""Endpoints API de consultation du catalogue.
- Détail d'un événement et liste de ses types de billets (prix, stock restant).
- 404 si l'événement est introuvable (NotFound, rendu par le handler global).
"""
from typing import Any, Dict, List
from fastapi import APIRouter

from billetterie.errors import NotFound
from billetterie.events import repository as events_repository

router = APIRouter(prefix="/api/v1/events", tags=["Events API"])

def _event_summary(event: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": event.get("id"),
        "name": event.get("name") or "",
        "date_time": event.get("date_time"),
        "location": event.get("location"),
    }

@router.get("/{event_id}")
def get_event(event_id: str) -> Dict[str, Any]:
    event = events_repository.get_event(event_id)
    if not event:
        raise NotFound("Evénement introuvable", {"event_id": event_id})
    return _event_summary(event)

@router.get("/{event_id}/ticket-types")
def list_ticket_types(event_id: str) -> List[Dict[str, Any]]:
    """
    Types de billets d'un événement, normalisés {id, name, description, price, quantity}.
    - 404 si l'événement n'existe pas.
    """
    if not events_repository.get_event(event_id):
        raise NotFound("Evénement introuvable", {"event_id": event_id})
    return [
        {
            "id": tt.get("id"),
            "name": tt.get("name") or "",
            "description": tt.get("description") or "",
            "price": float(tt.get("price") or 0),
            "quantity": int(tt.get("quantity") or 0),
        }
        for tt in events_repository.get_ticket_types(event_id)
    ]
