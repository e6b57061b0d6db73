# Route handlers here are built inside a factory and annotated with the
# per-kind schema classes, so annotations must stay eagerly evaluated.
from typing import Type

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel

from atelier_api.core.auth import get_current_user_id

from . import schemas
from .kinds import CHARACTER, SCENE, STYLE, EntityKind
from .service import clone_version, create_entity, get_entity_with_versions, list_entities, update_entity


def build_entity_router(
    kind: EntityKind,
    prefix: str,
    create_in: Type[BaseModel],
    patch_in: Type[BaseModel],
    clone_in: Type[BaseModel],
    detail_out: Type[BaseModel],
    version_out: Type[BaseModel],
) -> APIRouter:
    router = APIRouter(tags=[prefix])
    base = f"/spaces/{{space_id}}/{prefix}"

    @router.get(base, response_model=schemas.EntitiesListOut, name=f"list_{prefix}")
    def api_list(
        space_id: str = Path(...),
        user_id: str = Depends(get_current_user_id),
    ) -> schemas.EntitiesListOut:
        return schemas.EntitiesListOut(items=list_entities(kind, user_id, space_id))

    @router.post(base, response_model=schemas.EntitySummaryOut, status_code=201, name=f"create_{kind.name}")
    def api_create(
        body: create_in,  # type: ignore[valid-type]
        space_id: str = Path(...),
        user_id: str = Depends(get_current_user_id),
    ) -> schemas.EntitySummaryOut:
        return create_entity(kind, user_id, space_id, body.model_dump())

    @router.patch(f"{base}/{{entity_id}}", response_model=schemas.EntitySummaryOut, name=f"update_{kind.name}")
    def api_update(
        body: patch_in,  # type: ignore[valid-type]
        space_id: str = Path(...),
        entity_id: str = Path(...),
        user_id: str = Depends(get_current_user_id),
    ) -> schemas.EntitySummaryOut:
        return update_entity(kind, user_id, space_id, entity_id, body.model_dump(exclude_unset=True))

    @router.get(f"{base}/{{entity_id}}/versions", response_model=detail_out, name=f"get_{kind.name}_versions")
    def api_get_versions(
        space_id: str = Path(...),
        entity_id: str = Path(...),
        user_id: str = Depends(get_current_user_id),
    ):
        return get_entity_with_versions(kind, user_id, space_id, entity_id)

    @router.post(
        f"{base}/{{entity_id}}/versions",
        response_model=version_out,
        status_code=201,
        name=f"clone_{kind.name}_version",
    )
    def api_clone_version(
        body: clone_in,  # type: ignore[valid-type]
        space_id: str = Path(...),
        entity_id: str = Path(...),
        user_id: str = Depends(get_current_user_id),
    ):
        overrides = body.model_dump(exclude_unset=True)
        from_version_id = overrides.pop("from_version_id")
        return clone_version(kind, user_id, space_id, entity_id, from_version_id, overrides)

    return router


characters_router = build_entity_router(
    CHARACTER,
    "characters",
    schemas.CharacterCreateIn,
    schemas.CharacterPatchIn,
    schemas.CharacterCloneIn,
    schemas.CharacterDetailOut,
    schemas.CharacterVersionOut,
)

styles_router = build_entity_router(
    STYLE,
    "styles",
    schemas.StyleCreateIn,
    schemas.StylePatchIn,
    schemas.StyleCloneIn,
    schemas.StyleDetailOut,
    schemas.StyleVersionOut,
)

scenes_router = build_entity_router(
    SCENE,
    "scenes",
    schemas.SceneCreateIn,
    schemas.ScenePatchIn,
    schemas.SceneCloneIn,
    schemas.SceneDetailOut,
    schemas.SceneVersionOut,
)
