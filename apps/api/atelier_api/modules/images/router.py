from __future__ import annotations

import threading

from fastapi import APIRouter, Depends, Path, Request, Response

from atelier_api.core.auth import get_current_user_id
from atelier_api.core.errors import NotFound

from .providers.registry import ServiceRegistry
from .schemas import ImageGenerateIn, ImageOut, ImagesListOut
from .service import delete_image, generate_image, get_image, list_images

router = APIRouter(tags=["images"])


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry


def _rid(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post("/images/generate", response_model=ImageOut, status_code=201)
def api_generate_image(
    body: ImageGenerateIn,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    registry: ServiceRegistry = Depends(get_registry),
) -> ImageOut:
    cancel = threading.Event()
    timer = threading.Timer(registry.settings.generation_timeout_seconds, cancel.set)
    timer.daemon = True
    timer.start()
    try:
        return generate_image(
            registry,
            user_id,
            body.space_id,
            body.character_version_id,
            body.style_version_id,
            scene_version_id=body.scene_version_id,
            seed=body.seed,
            aspect_ratio=body.aspect_ratio,
            resolution=body.resolution,
            cancel=cancel,
            request_id=_rid(request),
        )
    finally:
        timer.cancel()


@router.get("/spaces/{space_id}/images", response_model=ImagesListOut)
def api_list_images(
    space_id: str = Path(...),
    user_id: str = Depends(get_current_user_id),
    registry: ServiceRegistry = Depends(get_registry),
) -> ImagesListOut:
    return ImagesListOut(items=list_images(registry, user_id, space_id))


@router.get("/spaces/{space_id}/images/{image_id}", response_model=ImageOut)
def api_get_image(
    space_id: str = Path(...),
    image_id: str = Path(...),
    user_id: str = Depends(get_current_user_id),
    registry: ServiceRegistry = Depends(get_registry),
) -> ImageOut:
    return get_image(registry, user_id, space_id, image_id)


@router.delete("/spaces/{space_id}/images/{image_id}", status_code=204)
def api_delete_image(
    request: Request,
    space_id: str = Path(...),
    image_id: str = Path(...),
    user_id: str = Depends(get_current_user_id),
    registry: ServiceRegistry = Depends(get_registry),
) -> Response:
    if not delete_image(registry, user_id, space_id, image_id, request_id=_rid(request)):
        raise NotFound("IMAGE_NOT_FOUND", "image not found")
    return Response(status_code=204)
