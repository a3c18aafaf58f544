"""Registrar adapters - Domain registration API implementations."""

from .memory import InMemoryRegistrarClient
from .vercel import VercelRegistrarClient, create_http_client

__all__ = ["InMemoryRegistrarClient", "VercelRegistrarClient", "create_http_client"]
