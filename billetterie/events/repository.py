"""
Accès aux données 'events' et 'event_ticket_types'.
- Lecture seule: le checkout ne modifie jamais le stock.
- Toute erreur du store est journalisée puis remontée en InternalError
  (jamais confondue avec "introuvable").
"""
from typing import Any, Dict, List, Optional
import logging
import billetterie.infra.supabase_client as supabase_client
from billetterie.errors import InternalError

logger = logging.getLogger(__name__)

# module billetterie.events.repository
def get_event(event_id: Any) -> Optional[Dict[str, Any]]:
    """
    Récupère un événement par id (table 'events').
    - Retourne None si aucune ligne.
    """
    try:
        res = (
            supabase_client.get_supabase()
            .table("events")
            .select("id, name, date_time, location")
            .eq("id", event_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("events.repository.get_event failed event_id=%s", event_id)
        raise InternalError("Lecture de l'événement impossible") from e
    rows = res.data or []
    return rows[0] if rows else None

def get_ticket_types(event_id: Any) -> List[Dict[str, Any]]:
    """
    Types de billets d'un événement, avec prix et stock restant (quantity).
    """
    try:
        res = (
            supabase_client.get_supabase()
            .table("event_ticket_types")
            .select("id, event_id, name, description, price, quantity")
            .eq("event_id", event_id)
            .order("id")
            .execute()
        )
    except Exception as e:
        logger.exception("events.repository.get_ticket_types failed event_id=%s", event_id)
        raise InternalError("Lecture des types de billets impossible") from e
    return res.data or []
