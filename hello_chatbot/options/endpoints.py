# hello_chatbot/options/endpoints.py
import logging
from fastapi import APIRouter, Depends
from typing import Annotated

from .models import ChatbotOptionsUpdate, ChatbotOptionsView
from .service import ChatbotOptionsService
from ..dependencies import get_admin_api_key, get_options_service

logger = logging.getLogger(__name__)

options_admin_router = APIRouter(
    prefix="/admin/options",
    tags=["Admin - Options"],
    dependencies=[Depends(get_admin_api_key)]
)


@options_admin_router.get("", response_model=ChatbotOptionsView)
@options_admin_router.get("/", response_model=ChatbotOptionsView, include_in_schema=False)
async def get_options_endpoint(
    service: Annotated[ChatbotOptionsService, Depends(get_options_service)]
):
    """Current chatbot options. The manual token is masked and the client secret hidden."""
    return await service.get_view()


@options_admin_router.put("", response_model=ChatbotOptionsView)
@options_admin_router.put("/", response_model=ChatbotOptionsView, include_in_schema=False)
async def update_options_endpoint(
    options_update: ChatbotOptionsUpdate,
    service: Annotated[ChatbotOptionsService, Depends(get_options_service)]
):
    """Update the given options. Omitted fields keep their stored value."""
    logger.info(f"API: Received options update for fields: {sorted(options_update.model_dump(exclude_unset=True))}")
    return await service.apply_update(options_update)
