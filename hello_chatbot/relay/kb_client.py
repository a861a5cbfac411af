# hello_chatbot/relay/kb_client.py
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .errors import ChatbotNotConfiguredError, KnowledgeBaseRequestError
from .models import AskResponse, ConnectionTestResult, Reference
from ..credentials.credential_cache import CredentialCache
from ..credentials.errors import CredentialUnavailableError
from ..options import keys
from ..options.service import parse_custom_responses
from ..options.storage_interfaces import AbstractOptionStore
from ..settings import settings

logger = logging.getLogger(__name__)

DEFAULT_ANSWER = "I apologize, but I could not generate a response."
DATA_GROUP = "Website Bot"
MAX_ANSWER_LENGTH = 800
MAX_REFERENCES = 3
REFERENCE_DESCRIPTION_LENGTH = 150

# Sources pointing at documents are not shown as references
EXCLUDED_REFERENCE_EXTENSIONS = (".pdf", ".docx", ".doc", ".pptx", ".ppt", ".xlsx", ".xls")


def build_ask_body(question: str, context: str = "") -> Dict[str, Any]:
    """Request body for the knowledge-base "ask" endpoint."""
    placeholders: Dict[str, Any] = {"pageContext": context} if context else {}
    return {
        "input": {
            "language": "en",
            "data": {
                "question": question,
                "dataGroup": DATA_GROUP,
                "parentConversationId": None,
            },
        },
        "output": {
            "language": "en",
            "maxLength": MAX_ANSWER_LENGTH,
        },
        "useCaseMeta": {
            "context": {
                "placeholders": placeholders,
                "PIIdata": {"mask": False},
            },
            "stream": False,
        },
    }


def filter_references(sources: Optional[List[Dict[str, Any]]]) -> List[Reference]:
    """
    Turn knowledge-base sources into at most three web references.

    Sources whose path looks like an office document or PDF are skipped.
    """
    references: List[Reference] = []
    for source in sources or []:
        if not isinstance(source, dict):
            continue
        path = str(source.get("path") or "")
        if any(ext in path.lower() for ext in EXCLUDED_REFERENCE_EXTENSIONS):
            continue
        content = str(source.get("content") or "")
        references.append(Reference(
            title=str(source.get("dataSource") or "Reference"),
            url=path or "#",
            description=content[:REFERENCE_DESCRIPTION_LENGTH] + "...",
        ))
        if len(references) >= MAX_REFERENCES:
            break
    return references


class KnowledgeBaseClient:
    """
    Relays questions to the knowledge-base API.

    Fetches a bearer token from the CredentialCache before every call.
    """

    def __init__(
        self,
        option_store: AbstractOptionStore,
        credential_cache: CredentialCache,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.option_store = option_store
        self.credential_cache = credential_cache
        self._transport = transport

    async def _prepare(self) -> Tuple[str, Dict[str, str]]:
        endpoint = await self.option_store.get_option(keys.CHATBOT_API_ENDPOINT, "") or ""
        if not endpoint:
            raise ChatbotNotConfiguredError()

        token = await self.credential_cache.get_valid_token()
        if not token:
            raise CredentialUnavailableError()

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
        }
        return endpoint, headers

    async def _post(self, endpoint: str, headers: Dict[str, str], body: Dict[str, Any], timeout: float) -> httpx.Response:
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as http_client:
            try:
                return await http_client.post(endpoint, json=body, headers=headers)
            except httpx.HTTPError as e:
                logger.error(f"Knowledge-base request to {endpoint} failed: {e}")
                raise KnowledgeBaseRequestError("Failed to connect to chatbot service") from e

    async def get_custom_response(self, question: str) -> Optional[AskResponse]:
        """Canned reply configured for exactly this question, if any."""
        raw = await self.option_store.get_option(keys.CHATBOT_CUSTOM_RESPONSES, {})
        custom = parse_custom_responses(raw).get(question)
        if custom is None:
            return None
        return AskResponse.model_validate(custom.model_dump())

    async def ask(self, question: str, context: str = "") -> AskResponse:
        """
        Answer `question` from the custom responses, or else from the knowledge base.

        A custom response needs neither an endpoint nor a token.

        Raises:
            ChatbotNotConfiguredError: no endpoint configured.
            CredentialUnavailableError: no usable bearer token.
            KnowledgeBaseRequestError: the call failed or returned garbage.
        """
        custom = await self.get_custom_response(question)
        if custom is not None:
            logger.info("Answered from custom responses; knowledge base not called.")
            return custom

        endpoint, headers = await self._prepare()
        body = build_ask_body(question, context)
        logger.debug(f"Knowledge-base request to {endpoint}: question length {len(question)}")

        response = await self._post(endpoint, headers, body, settings.kb_request_timeout_seconds)
        logger.info(f"Knowledge-base responded with status: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"Knowledge-base response body: {response.text[:500]}")
            raise KnowledgeBaseRequestError(
                f"API returned status code: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise KnowledgeBaseRequestError("Invalid response from chatbot service") from e
        if not data or not isinstance(data, dict):
            raise KnowledgeBaseRequestError("Invalid response from chatbot service")

        return AskResponse(
            answer=data.get("answer") or DEFAULT_ANSWER,
            references=filter_references(data.get("sources")),
        )

    async def test_connection(self) -> ConnectionTestResult:
        """Send a fixed test question and report whether the endpoint answered with 200."""
        try:
            endpoint, headers = await self._prepare()
            response = await self._post(
                endpoint, headers, build_ask_body("test connection"), settings.kb_test_timeout_seconds
            )
        except ChatbotNotConfiguredError:
            return ConnectionTestResult(success=False, message="API endpoint not configured")
        except CredentialUnavailableError as e:
            return ConnectionTestResult(success=False, message=e.message)
        except KnowledgeBaseRequestError as e:
            return ConnectionTestResult(success=False, message=f"Connection failed: {e.message}")

        if response.status_code == 200:
            return ConnectionTestResult(success=True, message="Connection successful!")
        return ConnectionTestResult(success=False, message=f"API returned status code: {response.status_code}")
