from typing import Callable, Optional

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from restmodel import ModelInstance, ModelRegistry, RestModelAPI, StructuralError


def test_shadow_create_from_query(api: RestModelAPI, registry: ModelRegistry, client: TestClient) -> None:
    Test = registry.get_model("test")

    @api.shadow("test", "POST")
    async def build_test(request: Request) -> Optional[ModelInstance]:
        name = request.query_params.get("name")
        if name is None:
            # fall back to the generated handler
            return None
        return Test({"name": name})

    response = client.post("/tests", params={"name": "from query"})
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["attributes"] == {"name": "from query", "count": 0}
    assert client.get(f"/tests/{data['id']}").json()["data"] == data

    # without the query parameter the body is parsed as usual
    response = client.post("/tests", json={"data": {"type": "test", "attributes": {"name": "from body"}}})
    assert response.status_code == 201
    assert response.json()["data"]["attributes"]["name"] == "from body"


def test_shadow_fetch(api: RestModelAPI, client: TestClient) -> None:
    @api.shadow("test", "GET")
    async def virtual_test(request: Request) -> Optional[ModelInstance]:
        object_id = request.path_params.get("object_id")
        if object_id != "virtual":
            return None
        return ModelInstance("test", {"name": "virtual"}, id="virtual")

    response = client.get("/tests/virtual")
    assert response.status_code == 200
    assert response.json()["data"] == {"type": "test", "id": "virtual", "attributes": {"name": "virtual"}}
    assert client.get("/tests/other").status_code == 404
    # the collection route isn't affected
    assert client.get("/tests").json()["data"] == []


def test_shadow_update_and_delete(api: RestModelAPI, client: TestClient, post_resource: Callable[..., dict]) -> None:
    data = post_resource("tests", "test", {"name": "test"})

    @api.shadow("test", "PATCH", "DELETE")
    async def resolve(request: Request) -> ModelInstance:
        return ModelInstance("test", {"name": "shadowed"}, id=int(request.path_params["object_id"]))

    response = client.patch(f"/tests/{data['id']}", content=b"ignored")
    assert response.status_code == 200
    assert response.json()["data"]["attributes"] == {"name": "shadowed"}

    assert client.delete(f"/tests/{data['id']}").status_code == 204
    assert client.get(f"/tests/{data['id']}").status_code == 404


def test_shadow_type_mismatch(api: RestModelAPI, client: TestClient) -> None:
    @api.shadow("test", "POST")
    async def wrong_type(request: Request) -> ModelInstance:
        return ModelInstance("book", {"title": "book"})

    response = client.post("/tests")
    assert response.status_code == 409


def test_shadow_registration_errors(api: RestModelAPI) -> None:
    with pytest.raises(StructuralError):
        api.shadow("unknown", "GET")
    with pytest.raises(StructuralError):
        api.shadow("test", "PUT")


def test_shadow_create_does_not_overwrite(api: RestModelAPI, client: TestClient, post_resource: Callable[..., dict]) -> None:
    data = post_resource("tests", "test", {"name": "test"})

    @api.shadow("test", "POST")
    async def existing_id(request: Request) -> ModelInstance:
        return ModelInstance("test", {"name": "overwritten"}, id=int(data["id"]))

    response = client.post("/tests")
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "AdapterError"
    assert client.get(f"/tests/{data['id']}").json()["data"] == data


def test_shadow_patch_missing_instance(api: RestModelAPI, client: TestClient) -> None:
    @api.shadow("test", "PATCH")
    async def resolve(request: Request) -> ModelInstance:
        return ModelInstance("test", {"name": "test"}, id=request.path_params["object_id"])

    assert client.patch("/tests/missing").status_code == 404
    # the instance wasn't created
    assert client.get("/tests/missing").status_code == 404
    assert client.get("/tests").json()["data"] == []


def test_shadow_id_defaults_to_url_id(api: RestModelAPI, client: TestClient, post_resource: Callable[..., dict]) -> None:
    data = post_resource("tests", "test", {"name": "test"})

    @api.shadow("test", "PATCH")
    async def without_id(request: Request) -> ModelInstance:
        return ModelInstance("test", {"name": "renamed"})

    response = client.patch(f"/tests/{data['id']}")
    assert response.status_code == 200
    assert response.json()["data"] == {"type": "test", "id": data["id"], "attributes": {"name": "renamed"}}


@pytest.mark.parametrize("method", ["PATCH", "DELETE"])
def test_shadow_id_mismatch(api: RestModelAPI, client: TestClient, post_resource: Callable[..., dict], method: str) -> None:
    first = post_resource("tests", "test", {"name": "first"})
    second = post_resource("tests", "test", {"name": "second"})

    @api.shadow("test", method)
    async def other_instance(request: Request) -> ModelInstance:
        return ModelInstance("test", {"name": "changed"}, id=second["id"])

    response = client.request(method, f"/tests/{first['id']}")
    assert response.status_code == 409
    assert client.get(f"/tests/{second['id']}").json()["data"] == second


def test_shadow_unrenderable_instance(api: RestModelAPI, client: TestClient) -> None:
    @api.shadow("test", "GET")
    async def not_a_number(request: Request) -> ModelInstance:
        return ModelInstance("test", {"count": float("nan")}, id="nan")

    response = client.get("/tests/nan")
    assert response.status_code == 500
    assert response.json()["errors"][0]["code"] == "GenericError"
