"""
Registre central des routers.
- API v1: payments (checkout, confirmation), events (catalogue), tickets
- Health: health_router
"""
from fastapi import FastAPI
from billetterie.payments import views as payments_views
from billetterie.events import views as events_views
from billetterie.tickets import views as tickets_views
from billetterie.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API v1
    app.include_router(payments_views.router)
    app.include_router(events_views.router)
    app.include_router(tickets_views.router)
    # Health & monitoring
    app.include_router(health_router)
