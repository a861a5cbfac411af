# hello_chatbot/relay/models.py
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class AskRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(min_length=1, description="The user's question.")
    page_context: str = Field(default="", description="Where the question was asked, e.g. page title and path.")


class Reference(BaseModel):
    title: str
    url: str
    description: str = ""


class AskResponse(BaseModel):
    answer: str
    references: List[Reference] = Field(default_factory=list)


class WidgetConfig(BaseModel):
    enabled: bool
    welcome_message: str
    position: str
    welcome_actions: List[str] = Field(default_factory=list)


class ConnectionTestResult(BaseModel):
    success: bool
    message: str
