from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Response

from atelier_api.core.auth import get_current_user_id
from atelier_api.core.errors import SpaceNotFoundOrForbidden
from atelier_api.modules.images.providers.registry import ServiceRegistry
from atelier_api.modules.images.router import get_registry

from .schemas import SpaceCreateIn, SpaceOut, SpacesListOut
from .service import create_space, delete_space, get_space, list_spaces

router = APIRouter(tags=["spaces"])


@router.get("/spaces", response_model=SpacesListOut)
def api_list_spaces(user_id: str = Depends(get_current_user_id)) -> SpacesListOut:
    return SpacesListOut(items=list_spaces(user_id))


@router.post("/spaces", response_model=SpaceOut, status_code=201)
def api_create_space(body: SpaceCreateIn, user_id: str = Depends(get_current_user_id)) -> SpaceOut:
    return create_space(user_id, body.name, body.description)


@router.get("/spaces/{space_id}", response_model=SpaceOut)
def api_get_space(space_id: str = Path(...), user_id: str = Depends(get_current_user_id)) -> SpaceOut:
    return get_space(user_id, space_id)


@router.delete("/spaces/{space_id}", status_code=204)
def api_delete_space(
    space_id: str = Path(...),
    user_id: str = Depends(get_current_user_id),
    registry: ServiceRegistry = Depends(get_registry),
) -> Response:
    if not delete_space(user_id, space_id, storage=registry.storage()):
        raise SpaceNotFoundOrForbidden()
    return Response(status_code=204)
