"""API routes for model provider configuration.

CRUD plus the single-enabled helpers. All endpoints use the
/api/v1/models prefix and answer with the result envelope.
"""

from fastapi import APIRouter, Depends

from a2a_desk.api.deps import get_model_store
from a2a_desk.api.envelope import InvokeResponse, invoke
from a2a_desk.services.record_store import ModelProviderStore
from a2a_desk.services.record_types import ModelProviderCreate, ModelProviderPatch

router = APIRouter(prefix="/models", tags=["models"])


@router.post("", response_model=InvokeResponse)
def create_model(
    body: ModelProviderCreate,
    store: ModelProviderStore = Depends(get_model_store),
) -> InvokeResponse:
    """Insert a model provider. Data is the new id."""
    return invoke(store.insert, body)


@router.get("", response_model=InvokeResponse)
def list_models(store: ModelProviderStore = Depends(get_model_store)) -> InvokeResponse:
    """List all model providers by ascending id."""
    return invoke(store.get_all)


@router.get("/enabled", response_model=InvokeResponse)
def list_enabled_models(store: ModelProviderStore = Depends(get_model_store)) -> InvokeResponse:
    return invoke(store.get_enabled)


@router.get("/by-key", response_model=InvokeResponse)
def get_model_by_key(
    model_key: str,
    store: ModelProviderStore = Depends(get_model_store),
) -> InvokeResponse:
    """Look up by model_key. A miss is a success with null data."""
    return invoke(store.get_by_key, model_key)


@router.delete("/by-key", response_model=InvokeResponse)
def delete_model_by_key(
    model_key: str,
    store: ModelProviderStore = Depends(get_model_store),
) -> InvokeResponse:
    return invoke(store.delete_by_key, model_key)


@router.get("/{record_id}", response_model=InvokeResponse)
def get_model(
    record_id: int,
    store: ModelProviderStore = Depends(get_model_store),
) -> InvokeResponse:
    """Look up by id. A miss is a success with null data."""
    return invoke(store.get_by_id, record_id)


@router.patch("/{record_id}", response_model=InvokeResponse)
def update_model(
    record_id: int,
    body: ModelProviderPatch,
    store: ModelProviderStore = Depends(get_model_store),
) -> InvokeResponse:
    """Partially update a provider. Only fields present in the body change."""
    return invoke(store.update, record_id, body)


@router.delete("/{record_id}", response_model=InvokeResponse)
def delete_model(
    record_id: int,
    store: ModelProviderStore = Depends(get_model_store),
) -> InvokeResponse:
    return invoke(store.delete_by_id, record_id)


@router.post("/{record_id}/toggle", response_model=InvokeResponse)
def toggle_model(
    record_id: int,
    store: ModelProviderStore = Depends(get_model_store),
) -> InvokeResponse:
    """Flip the enabled flag. Other providers are left as they are."""
    return invoke(store.toggle_enabled, record_id)


@router.post("/{record_id}/disable-others", response_model=InvokeResponse)
def disable_other_models(
    record_id: int,
    store: ModelProviderStore = Depends(get_model_store),
) -> InvokeResponse:
    return invoke(store.disable_others, record_id)


@router.post("/{record_id}/activate", response_model=InvokeResponse)
def activate_model(
    record_id: int,
    store: ModelProviderStore = Depends(get_model_store),
) -> InvokeResponse:
    """Enable this provider and disable all others in one transaction."""
    return invoke(store.enable_exclusively, record_id)
