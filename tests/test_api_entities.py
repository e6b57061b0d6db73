from __future__ import annotations

import pytest


@pytest.fixture
def h(make_headers):
    return make_headers("alice")


@pytest.fixture
def sid(client, h) -> str:
    return client.post("/spaces", json={"name": "Studio"}, headers=h).json()["id"]


def test_character_create_list_and_versions(client, h, sid) -> None:
    r = client.post(
        f"/spaces/{sid}/characters",
        json={
            "name": "Ada",
            "description": "pilot",
            "physical_description": "Tall",
            "appearance": {"hair": {"hair_color": "red", "hair_style": "wavy, wavy"}},
        },
        headers=h,
    )
    assert r.status_code == 201
    created = r.json()
    assert created["latest_version"] == {"id": created["latest_version"]["id"], "version_number": 1, "label": "v1"}

    items = client.get(f"/spaces/{sid}/characters", headers=h).json()["items"]
    assert [i["id"] for i in items] == [created["id"]]

    detail = client.get(f"/spaces/{sid}/characters/{created['id']}/versions", headers=h).json()
    (v1,) = detail["versions"]
    assert detail["name"] == "Ada"
    assert v1["physical_description"] == "Tall"
    assert v1["appearance"] == {"hair": {"hair_color": "red", "hair_style": ["wavy"]}}


def test_clone_version_route(client, h, sid) -> None:
    style = client.post(f"/spaces/{sid}/styles", json={"name": "Noir", "lighting": "Hard"}, headers=h).json()
    v1_id = style["latest_version"]["id"]

    r = client.post(
        f"/spaces/{sid}/styles/{style['id']}/versions",
        json={"from_version_id": v1_id, "camera": "35mm", "lighting": None},
        headers=h,
    )
    assert r.status_code == 201
    v2 = r.json()
    assert v2["version_number"] == 2
    assert v2["label"] == "v2"
    assert v2["camera"] == "35mm"
    assert v2["lighting"] == "Hard"
    assert v2["cloned_from_version_id"] == v1_id

    r = client.post(f"/spaces/{sid}/styles/{style['id']}/versions", json={"from_version_id": "nope"}, headers=h)
    assert r.status_code == 404
    assert r.json()["error"] == "STYLE_VERSION_NOT_FOUND"


def test_clone_requires_from_version_id(client, h, sid) -> None:
    style = client.post(f"/spaces/{sid}/styles", json={"name": "Noir"}, headers=h).json()
    r = client.post(f"/spaces/{sid}/styles/{style['id']}/versions", json={}, headers=h)
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"


def test_patch_and_edit_lock(client, h, sid) -> None:
    character = client.post(f"/spaces/{sid}/characters", json={"name": "Ada"}, headers=h).json()
    style = client.post(f"/spaces/{sid}/styles", json={"name": "Noir"}, headers=h).json()

    r = client.patch(
        f"/spaces/{sid}/styles/{style['id']}",
        json={"name": "Neo Noir", "style_definition": {"core_style": {"render_domain": "illustration"}}},
        headers=h,
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Neo Noir"

    r = client.post(
        "/images/generate",
        json={
            "space_id": sid,
            "character_version_id": character["latest_version"]["id"],
            "style_version_id": style["latest_version"]["id"],
        },
        headers=h,
    )
    assert r.status_code == 201

    r = client.patch(f"/spaces/{sid}/characters/{character['id']}", json={"name": "Ada L"}, headers=h)
    assert r.status_code == 409
    assert r.json()["error"] == "CHARACTER_HAS_GENERATED_IMAGES"

    r = client.patch(f"/spaces/{sid}/styles/{style['id']}", json={"description": "x"}, headers=h)
    assert r.status_code == 409
    assert r.json()["error"] == "STYLE_HAS_GENERATED_IMAGES"


def test_scenes_have_the_full_surface(client, h, sid) -> None:
    scene = client.post(f"/spaces/{sid}/scenes", json={"name": "Hangar", "mood": "Tense"}, headers=h).json()

    r = client.patch(f"/spaces/{sid}/scenes/{scene['id']}", json={"description": "Old hangar"}, headers=h)
    assert r.json()["description"] == "Old hangar"

    r = client.post(
        f"/spaces/{sid}/scenes/{scene['id']}/versions",
        json={"from_version_id": scene["latest_version"]["id"], "label": "night", "time_of_day": "Night"},
        headers=h,
    )
    assert r.status_code == 201
    assert r.json()["mood"] == "Tense"
    assert r.json()["time_of_day"] == "Night"

    versions = client.get(f"/spaces/{sid}/scenes/{scene['id']}/versions", headers=h).json()["versions"]
    assert [v["label"] for v in versions] == ["v1", "night"]


def test_entities_of_other_users_space_are_not_found(client, h, sid, make_headers) -> None:
    character = client.post(f"/spaces/{sid}/characters", json={"name": "Ada"}, headers=h).json()
    bob = make_headers("bob")

    r = client.get(f"/spaces/{sid}/characters/{character['id']}/versions", headers=bob)
    assert r.status_code == 404
    assert r.json()["error"] == "SPACE_NOT_FOUND"

    r = client.post(f"/spaces/{sid}/characters", json={"name": "Mallory"}, headers=bob)
    assert r.status_code == 404


def test_unknown_entity_is_404(client, h, sid) -> None:
    r = client.patch(f"/spaces/{sid}/characters/missing", json={"name": "x"}, headers=h)
    assert r.status_code == 404
    assert r.json()["error"] == "CHARACTER_NOT_FOUND"


def test_attribute_config_routes(client) -> None:
    r = client.get("/character-appearance-config")
    assert r.status_code == 200
    orders = [c["order"] for c in r.json()["categories"]]
    assert orders == sorted(orders)

    r = client.get("/style-definition-config")
    assert r.json()["categories"][0]["key"] == "core_style"
