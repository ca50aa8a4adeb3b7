"""API routes for per-user LLM provider credentials.

Endpoints:
    GET /settings/api-key: Active provider and per-provider models (no keys)
    POST /settings/api-key: Save provider/model/apiKey and make it active
"""

import logging

from fastapi import APIRouter, Depends

from chatrelay.api.deps import get_credential_store, get_current_user
from chatrelay.api.schemas import ApiKeyConfigResponse, SaveApiKeyRequest, SuccessResponse
from chatrelay.services.account_service import SessionUser
from chatrelay.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/api-key", response_model=ApiKeyConfigResponse)
def get_api_key_config(
    user: SessionUser = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    """Report which providers are configured. API keys are never returned."""
    config = store.get(user.id)
    return ApiKeyConfigResponse(
        has_api_key=config.has_api_key,
        active_provider=config.active_provider,
        configs=config.configs,
    )


@router.post("/api-key", response_model=SuccessResponse)
def save_api_key(
    data: SaveApiKeyRequest,
    user: SessionUser = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    """Store credentials for one provider; other providers are kept."""
    store.save(user.id, data.provider, data.model, data.api_key)
    return SuccessResponse()
