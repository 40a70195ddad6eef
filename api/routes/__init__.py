"""API route handlers."""

from api.routes import claims, commitment, health, proofs

__all__ = ["health", "commitment", "proofs", "claims"]
