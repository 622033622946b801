from typing import Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from restmodel import MemoryAdapter, ModelRegistry, RestModelAPI

JSONAPI_HEADERS = {"Content-Type": "application/vnd.api+json"}


def build_registry() -> ModelRegistry:
    registry = ModelRegistry()
    registry.register_model(
        "test",
        {
            "schema": {
                "properties": {
                    "name": {"type": "string", "required": True},
                    "another": {"type": "string"},
                    "count": {"type": "number", "default": 0},
                    "active": {"type": "boolean"},
                    "created": {"type": "date"},
                }
            }
        },
    )
    registry.register_model(
        "author",
        {
            "schema": {
                "properties": {"name": {"type": "string", "required": True}},
                "relationships": {
                    "books": {"type": "book", "foreignKey": "author_id"},
                    "favorite": {"type": "book", "foreignKey": "favorite_of", "hasMany": False},
                    "notes": {"type": "note", "foreignKey": "author_id"},
                    "ghosts": {"type": "ghost", "foreignKey": "author_id"},
                },
            }
        },
    )
    registry.register_model(
        "book",
        {
            "schema": {
                "properties": {
                    "title": {"type": "string", "required": True},
                    "author_id": {"type": "number"},
                    "favorite_of": {"type": "number"},
                }
            }
        },
    )
    registry.register_model("note", {"schema": {"properties": {"text": {"type": "string"}}}, "requestable": False})
    registry.register_model(
        "secret",
        {
            "schema": {
                "properties": {"value": {"type": "string"}},
                "relationships": {"books": {"type": "book", "foreignKey": "secret_id"}},
            },
            "requestable": False,
        },
    )
    return registry


@pytest.fixture
def registry() -> ModelRegistry:
    return build_registry()


@pytest.fixture
def adapter() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture
def app() -> FastAPI:
    return FastAPI()


@pytest.fixture
def api(app: FastAPI, registry: ModelRegistry, adapter: MemoryAdapter) -> RestModelAPI:
    return RestModelAPI(app, registry, adapter)


@pytest.fixture
def client(app: FastAPI, api: RestModelAPI) -> Iterator[TestClient]:
    api.expose_all()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def post_resource(client: TestClient) -> Callable[..., dict]:
    """
    POST a resource and return the created data member
    """

    def post(collection: str, type_: str, attributes: dict, prefix: str = "") -> dict:
        response = client.post(f"{prefix}/{collection}", json={"data": {"type": type_, "attributes": attributes}}, headers=JSONAPI_HEADERS)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return post
