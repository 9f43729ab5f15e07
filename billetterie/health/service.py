from urllib.parse import urlparse
import socket
import logging
from billetterie.config import SUPABASE_URL
import billetterie.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLES = ("events", "event_ticket_types", "tickets")

def _check_table(client, name: str):
    try:
        res = client.table(name).select("id").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception:
        logger.warning("health.check_table failed table=%s", name)
        return {"ok": False}

def health_supabase_info():
    """
    Diagnostic de connectivité Supabase: DNS de l'hôte puis sonde par table.
    Les messages d'erreur internes ne sont pas exposés.
    """
    parsed = urlparse(SUPABASE_URL) if SUPABASE_URL else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except OSError:
            dns_ok = False

    info = {"hostname": hostname, "dns_ok": dns_ok, "connect_ok": False, "tables": {}}
    try:
        client = supabase_client.get_supabase()
        for t in TABLES:
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = all(v["ok"] for v in info["tables"].values())
    except Exception:
        logger.exception("health.health_supabase_info failed")
    return info
