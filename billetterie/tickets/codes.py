"""
Codes de rédemption (qr_code_id) déterministes.

Un billet = (session, type de billet, rang de l'unité). Rejouer l'émission
d'une session produit exactement les mêmes codes: la contrainte d'unicité
en base suffit alors à empêcher toute double émission.
"""
from typing import Any


def session_prefix(session_id: str) -> str:
    return f"{session_id}_"

def redemption_code(session_id: str, ticket_type_id: Any, index: int) -> str:
    return f"{session_id}_{ticket_type_id}_{index}"

def belongs_to_session(code: str, session_id: str) -> bool:
    return (code or "").startswith(session_prefix(session_id))
