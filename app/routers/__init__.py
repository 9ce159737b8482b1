# API Routers - DocLedger
# Owner identity arrives explicitly in the X-Owner-Id header

from app.routers import documents, health, verify

__all__ = ["documents", "health", "verify"]
