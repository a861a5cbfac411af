# hello_chatbot/options/service.py
import logging
from typing import Any, Dict

from pydantic import ValidationError

from . import keys
from .models import ChatbotOptionsUpdate, ChatbotOptionsView, CustomResponse
from .storage_interfaces import AbstractOptionStore
from ..utils.security import mask_secret

logger = logging.getLogger(__name__)

# ChatbotOptionsUpdate field -> option name
_UPDATE_FIELD_TO_OPTION = {
    "enabled": keys.CHATBOT_ENABLED,
    "api_endpoint": keys.CHATBOT_API_ENDPOINT,
    "api_token": keys.CHATBOT_API_TOKEN,
    "welcome_message": keys.CHATBOT_WELCOME_MESSAGE,
    "position": keys.CHATBOT_POSITION,
    "custom_responses": keys.CHATBOT_CUSTOM_RESPONSES,
    "use_oauth": keys.CHATBOT_USE_OAUTH,
    "oauth_client_id": keys.CHATBOT_OAUTH_CLIENT_ID,
    "oauth_client_secret": keys.CHATBOT_OAUTH_CLIENT_SECRET,
    "oauth_tenant_id": keys.CHATBOT_OAUTH_TENANT_ID,
    "oauth_scope": keys.CHATBOT_OAUTH_SCOPE,
    "oauth_endpoint": keys.CHATBOT_OAUTH_ENDPOINT,
}


def parse_custom_responses(raw: Any) -> Dict[str, CustomResponse]:
    """Validate the stored prompt -> response table, dropping entries that don't parse."""
    if not isinstance(raw, dict):
        if raw:
            logger.warning("Custom responses option is not a mapping. Ignoring it.")
        return {}
    responses: Dict[str, CustomResponse] = {}
    for prompt, value in raw.items():
        try:
            responses[prompt] = CustomResponse.model_validate(value)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid custom response for prompt '{prompt}': {e}")
    return responses


class ChatbotOptionsService:
    """
    Reads and writes the chatbot's configuration options.

    Sits between the admin API and the option store, translating between the
    API models and the well-known option names.
    """

    def __init__(self, option_store: AbstractOptionStore):
        self.option_store = option_store

    async def is_enabled(self) -> bool:
        return bool(await self.option_store.get_option(keys.CHATBOT_ENABLED, False))

    async def get_widget_config(self) -> Dict[str, Any]:
        values = await self.option_store.get_options(
            (keys.CHATBOT_ENABLED, keys.CHATBOT_WELCOME_MESSAGE, keys.CHATBOT_POSITION, keys.CHATBOT_CUSTOM_RESPONSES)
        )
        return {
            "enabled": bool(values.get(keys.CHATBOT_ENABLED, False)),
            "welcome_message": values.get(keys.CHATBOT_WELCOME_MESSAGE) or keys.DEFAULT_WELCOME_MESSAGE,
            "position": values.get(keys.CHATBOT_POSITION) or keys.DEFAULT_POSITION,
            # Prompts with a canned answer are offered as quick actions under the welcome message
            "welcome_actions": list(parse_custom_responses(values.get(keys.CHATBOT_CUSTOM_RESPONSES))),
        }

    async def get_view(self) -> ChatbotOptionsView:
        values = await self.option_store.get_options(_UPDATE_FIELD_TO_OPTION.values())
        api_token = values.get(keys.CHATBOT_API_TOKEN) or ""
        return ChatbotOptionsView(
            enabled=bool(values.get(keys.CHATBOT_ENABLED, False)),
            api_endpoint=values.get(keys.CHATBOT_API_ENDPOINT) or "",
            api_token_preview=mask_secret(api_token),
            api_token_length=len(api_token),
            welcome_message=values.get(keys.CHATBOT_WELCOME_MESSAGE) or "",
            position=values.get(keys.CHATBOT_POSITION) or "",
            custom_responses=parse_custom_responses(values.get(keys.CHATBOT_CUSTOM_RESPONSES)),
            use_oauth=bool(values.get(keys.CHATBOT_USE_OAUTH, False)),
            oauth_client_id=values.get(keys.CHATBOT_OAUTH_CLIENT_ID) or "",
            oauth_client_secret_set=bool(values.get(keys.CHATBOT_OAUTH_CLIENT_SECRET)),
            oauth_tenant_id=values.get(keys.CHATBOT_OAUTH_TENANT_ID) or "",
            oauth_scope=values.get(keys.CHATBOT_OAUTH_SCOPE) or "",
            oauth_endpoint=values.get(keys.CHATBOT_OAUTH_ENDPOINT) or "",
        )

    async def apply_update(self, update: ChatbotOptionsUpdate) -> ChatbotOptionsView:
        """Write every field that was explicitly set, in a single transaction."""
        changes = {
            _UPDATE_FIELD_TO_OPTION[field]: value
            for field, value in update.model_dump(exclude_unset=True).items()
            if value is not None
        }
        logger.info(f"Service: Updating options: {sorted(changes.keys())}")
        await self.option_store.update_options(changes)
        return await self.get_view()
