# hello_chatbot/dependencies.py
import logging
from fastapi import Depends, HTTPException, Request, status, Header
from typing import Optional, Annotated

from .settings import settings
from .credentials.credential_cache import CredentialCache
from .options.service import ChatbotOptionsService
from .options.storage_interfaces import AbstractOptionStore
from .relay.kb_client import KnowledgeBaseClient

logger = logging.getLogger(__name__)

async def get_admin_api_key(
    x_admin_api_key: Annotated[
        Optional[str],
        Header(description="The API Key for accessing admin routes.")
    ] = None
) -> str:
    """
    Validates the admin API key for protected admin endpoints.

    Returns the validated key. Raises 503 when no key is configured on the
    server, 401 when the header is missing and 403 when it does not match.
    """
    if not settings.admin_api_key:
        logger.critical("ADMIN_API_KEY is not configured on the server. Admin endpoints are effectively disabled.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API service is not configured properly (API Key missing on server).",
        )

    if not x_admin_api_key:
        logger.warning("Admin API: Missing X-Admin-API-Key header.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated: X-Admin-API-Key header missing.",
            headers={"WWW-Authenticate": 'Basic realm="Admin Area"'},
        )

    if x_admin_api_key != settings.admin_api_key:
        logger.warning("Admin API: Invalid X-Admin-API-Key provided.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: Invalid API Key.",
            headers={"WWW-Authenticate": 'Basic realm="Admin Area"'},
        )

    return x_admin_api_key


def _get_component(request: Request, name: str):
    component = getattr(request.app.state, name, None)
    if component is None:
        logger.error(f"Application component '{name}' is not initialized.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not initialized.",
        )
    return component


async def get_option_store(request: Request) -> AbstractOptionStore:
    return _get_component(request, "option_store")


async def get_credential_cache(request: Request) -> CredentialCache:
    return _get_component(request, "credential_cache")


async def get_kb_client(request: Request) -> KnowledgeBaseClient:
    return _get_component(request, "kb_client")


async def get_options_service(
    option_store: Annotated[AbstractOptionStore, Depends(get_option_store)]
) -> ChatbotOptionsService:
    """Factory function to create ChatbotOptionsService with injected store dependency."""
    return ChatbotOptionsService(option_store)
