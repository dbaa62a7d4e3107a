"""Router modules exposed for convenient imports."""

from . import admin_review, bitcoin_price, health, submissions

__all__ = ["admin_review", "bitcoin_price", "health", "submissions"]
