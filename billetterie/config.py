# billetterie.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale de la billetterie.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe), CORS/hosts
- Paramètres du checkout (devise, locale, moyens de paiement, URLs de retour)
- Timeouts des collaborateurs externes (Stripe, PostgREST)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _float_env(name: str, default: float) -> float:
    raw = _clean_env(os.getenv(name) or "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default

# Supabase: URL et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Timeouts (secondes) imposés aux appels store / fournisseur de paiement
STORE_TIMEOUT_SECONDS = _float_env("STORE_TIMEOUT_SECONDS", 10.0)
STRIPE_TIMEOUT_SECONDS = _float_env("STRIPE_TIMEOUT_SECONDS", 20.0)

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000")

# Stripe: clé secrète
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")

# URLs de retour par défaut du checkout (surchargées par la requête)
STRIPE_SUCCESS_URL = _clean_env(os.getenv("STRIPE_SUCCESS_URL") or f"{BASE_URL}/success")
STRIPE_CANCEL_URL = _clean_env(os.getenv("STRIPE_CANCEL_URL") or f"{BASE_URL}/cancel")

# Paramètres du checkout hébergé
CHECKOUT_CURRENCY = _clean_env(os.getenv("CHECKOUT_CURRENCY") or "brl").lower()
CHECKOUT_LOCALE = _clean_env(os.getenv("CHECKOUT_LOCALE") or "pt-BR")
CHECKOUT_PAYMENT_METHOD_TYPES = [
    m.strip() for m in os.getenv("CHECKOUT_PAYMENT_METHOD_TYPES", "card,boleto").split(",") if m.strip()
]
CHECKOUT_ALLOW_PROMOTION_CODES = (os.getenv("CHECKOUT_ALLOW_PROMOTION_CODES", "false").lower() == "true")
