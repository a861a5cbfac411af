# hello_chatbot/relay/endpoints.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated

from .errors import ChatbotNotConfiguredError, KnowledgeBaseRequestError
from .kb_client import KnowledgeBaseClient
from .models import AskRequest, AskResponse, ConnectionTestResult, WidgetConfig
from ..credentials.errors import CredentialUnavailableError
from ..dependencies import get_admin_api_key, get_kb_client, get_options_service
from ..options.service import ChatbotOptionsService

logger = logging.getLogger(__name__)

# Public router used by the chat widget
chat_router = APIRouter(prefix="/chat", tags=["Chat"])

# Admin router for checking the knowledge-base connection
relay_admin_router = APIRouter(
    prefix="/admin/api",
    tags=["Admin - Knowledge Base"],
    dependencies=[Depends(get_admin_api_key)]
)


@chat_router.post("/message", response_model=AskResponse)
async def send_message_endpoint(
    ask_request: AskRequest,
    options_service: Annotated[ChatbotOptionsService, Depends(get_options_service)],
    kb_client: Annotated[KnowledgeBaseClient, Depends(get_kb_client)]
):
    """
    Answer one question from the custom responses or the knowledge base.

    Returns 503 when the chatbot is disabled, not configured or has no usable
    credential, and 502 when the knowledge-base call fails.
    """
    if not await options_service.is_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Chatbot is disabled")

    try:
        return await kb_client.ask(ask_request.message, ask_request.page_context)
    except (ChatbotNotConfiguredError, CredentialUnavailableError) as e:
        logger.error(f"API: Chat message rejected: {e.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    except KnowledgeBaseRequestError as e:
        logger.error(f"API: Knowledge-base call failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)


@chat_router.get("/config", response_model=WidgetConfig)
async def get_widget_config_endpoint(
    options_service: Annotated[ChatbotOptionsService, Depends(get_options_service)]
):
    """Settings the widget needs to render itself."""
    return WidgetConfig(**await options_service.get_widget_config())


@relay_admin_router.post("/test-connection", response_model=ConnectionTestResult)
async def test_kb_connection_endpoint(
    kb_client: Annotated[KnowledgeBaseClient, Depends(get_kb_client)]
):
    logger.info("API: Knowledge-base connection test requested.")
    return await kb_client.test_connection()
