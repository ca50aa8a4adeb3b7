"""Pydantic request/response schemas for the ChatRelay API.

Request models are deliberately loose (Any) where the handlers must
return the API's own 400 message for missing or non-string fields
rather than FastAPI's validation payload.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SignInRequest(BaseModel):
    username: Any = None
    password: Any = None


class SessionUserResponse(BaseModel):
    id: str
    name: str | None = None
    email: str | None = None


class SessionResponse(BaseModel):
    user: SessionUserResponse


class SendMessageRequest(BaseModel):
    """Request for sending a user message."""

    message: Any = None


class SendMessageResponse(BaseModel):
    response: str


class TurnResponse(BaseModel):
    """A single stored conversation turn."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    content: str
    sender: str
    is_user: bool = Field(alias="isUser")
    user_id: str = Field(alias="userId")
    timestamp: str


class MessagesResponse(BaseModel):
    messages: list[TurnResponse]


class ModelConfigResponse(BaseModel):
    model: str


class ApiKeyConfigResponse(BaseModel):
    """Credential configuration view. Never contains API keys."""

    model_config = ConfigDict(populate_by_name=True)

    has_api_key: bool = Field(alias="hasApiKey")
    active_provider: str | None = Field(default=None, alias="activeProvider")
    configs: dict[str, ModelConfigResponse] = Field(default_factory=dict)


class SaveApiKeyRequest(BaseModel):
    """Request to save one provider's credentials."""

    model_config = ConfigDict(populate_by_name=True)

    provider: Any = None
    model: Any = None
    api_key: Any = Field(default=None, alias="apiKey")


class SuccessResponse(BaseModel):
    success: bool = True


class ModelDescriptorResponse(BaseModel):
    id: str
    name: str
    description: str


class ProviderDescriptorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    api_key_placeholder: str = Field(alias="apiKeyPlaceholder")
    api_docs_url: str = Field(alias="apiDocsUrl")
    models: list[ModelDescriptorResponse]
    implemented: bool = False


class ProvidersResponse(BaseModel):
    providers: list[ProviderDescriptorResponse]
