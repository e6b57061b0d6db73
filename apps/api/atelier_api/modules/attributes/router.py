from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from .registry import get_schema

router = APIRouter(tags=["attributes"])


@router.get("/character-appearance-config")
def api_character_appearance_config() -> Dict[str, Any]:
    return get_schema("character_appearance").to_dict()


@router.get("/style-definition-config")
def api_style_definition_config() -> Dict[str, Any]:
    return get_schema("style_definition").to_dict()
