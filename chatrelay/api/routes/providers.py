"""API route exposing the provider catalog to the settings UI."""

from fastapi import APIRouter

from chatrelay.api.schemas import ProvidersResponse
from chatrelay.services.provider_registry import list_providers
from chatrelay.services.providers import registered_providers

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("", response_model=ProvidersResponse)
def get_providers():
    """List providers in catalog order, flagging which have an adapter."""
    implemented = set(registered_providers())
    return ProvidersResponse(providers=[
        {**p.to_dict(), "implemented": p.id in implemented}
        for p in list_providers()
    ])
