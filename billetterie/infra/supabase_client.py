from typing import Optional
from supabase import create_client, Client, ClientOptions
from billetterie.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY, STORE_TIMEOUT_SECONDS

_supabase: Optional[Client] = None
_service_supabase: Optional[Client] = None

def _options() -> ClientOptions:
    # Toute requête PostgREST est bornée dans le temps
    return ClientOptions(postgrest_client_timeout=STORE_TIMEOUT_SECONDS)

def get_supabase() -> Client:
    """Client 'anon' partagé, utilisé pour les lectures (événements, types de billets)."""
    global _supabase
    if _supabase is None:
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON, options=_options())
    return _supabase

def get_service_supabase() -> Client:
    """Client service-role (bypass RLS), utilisé pour l'émission des billets."""
    global _service_supabase
    if not SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY, options=_options())
    return _service_supabase
