# hello_chatbot/options/models.py
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class CustomResponseReference(BaseModel):
    title: str
    url: str
    description: str = ""


class CustomResponse(BaseModel):
    """Canned reply returned for an exact prompt match instead of asking the knowledge base."""

    answer: str = Field(min_length=1)
    references: List[CustomResponseReference] = Field(default_factory=list)


class ChatbotOptionsView(BaseModel):
    """Option values as shown to administrators. Secrets are masked."""

    enabled: bool = False
    api_endpoint: str = ""
    api_token_preview: str = ""
    api_token_length: int = 0
    welcome_message: str = ""
    position: str = ""
    custom_responses: Dict[str, CustomResponse] = Field(default_factory=dict)
    use_oauth: bool = False
    oauth_client_id: str = ""
    oauth_client_secret_set: bool = False
    oauth_tenant_id: str = ""
    oauth_scope: str = ""
    oauth_endpoint: str = ""


class ChatbotOptionsUpdate(BaseModel):
    """Partial update of chatbot options - all fields are optional."""

    enabled: Optional[bool] = None
    api_endpoint: Optional[str] = None
    api_token: Optional[str] = Field(default=None, description="Manual bearer token.")
    welcome_message: Optional[str] = None
    position: Optional[str] = Field(default=None, pattern="^(bottom-right|bottom-left)$")
    custom_responses: Optional[Dict[str, CustomResponse]] = Field(
        default=None,
        description="Replaces the whole prompt -> canned response table."
    )
    use_oauth: Optional[bool] = None
    oauth_client_id: Optional[str] = None
    oauth_client_secret: Optional[str] = None
    oauth_tenant_id: Optional[str] = None
    oauth_scope: Optional[str] = None
    oauth_endpoint: Optional[str] = None
