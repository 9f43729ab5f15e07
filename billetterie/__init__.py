"""
Billetterie: checkout d'événements (Stripe) et émission idempotente des billets.
"""
