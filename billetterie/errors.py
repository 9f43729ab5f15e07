"""
Taxonomie d'erreurs du checkout et de l'émission des billets.

Chaque erreur porte un code HTTP et un code stable ('code') exposés par le
handler enregistré dans app_setup.exceptions. Les 'details' identifient la
ligne fautive (ticket_type_id, requested, available...).
"""
from typing import Any, Dict, Optional


class BilletterieError(Exception):
    status_code = 500
    code = "error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.details}


class InvalidRequest(BilletterieError):
    """Entrée invalide ou insuffisante (panier vide, stock dépassé...)."""
    status_code = 400
    code = "invalid_request"


class NotFound(BilletterieError):
    """Événement ou type de billet inconnu."""
    status_code = 404
    code = "not_found"


class PaymentNotConfirmed(BilletterieError):
    """La session de paiement n'est pas (encore) payée."""
    status_code = 400
    code = "payment_not_confirmed"


class InternalError(BilletterieError):
    """
    Échec du store, du fournisseur de paiement, ou metadata illisible.
    Le message public reste générique: la cause n'est que journalisée.
    """
    status_code = 500
    code = "internal_error"
    public_message = "Erreur interne du serveur"

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.public_message, "code": self.code}


# Statuts de résultat de l'émission (AlreadyProcessed n'est pas une erreur)
ISSUED = "issued"
ALREADY_PROCESSED = "already_processed"
