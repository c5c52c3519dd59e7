"""External service clients for tedee-bridge."""

from services.credentials import CredentialCache
from services.tedee import TedeeApiClient, create_api_client

__all__ = [
    "CredentialCache",
    "TedeeApiClient",
    "create_api_client",
]
