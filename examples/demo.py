#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Run:
  pip install -e .[server]
  python examples/demo.py [sqlite:///./demo.db]

Then open:
  http://127.0.0.1:8000/docs
  http://127.0.0.1:8000/api/authors
"""

import sys

from fastapi import FastAPI, Request

import uvicorn

from restmodel import MemoryAdapter, ModelRegistry, RestModelAPI, SQLAlchemyAdapter


def create_registry() -> ModelRegistry:
    registry = ModelRegistry()
    registry.register_model(
        "author",
        {
            "schema": {
                "properties": {
                    "name": {"type": "string", "required": True},
                    "email": {"type": "string"},
                    "joined": {"type": "date"},
                },
                "relationships": {"books": {"type": "book", "foreignKey": "author_id"}},
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
                    "published": {"type": "boolean", "default": False},
                }
            }
        },
    )
    # stored like the other models but never routed
    registry.register_model("audit", {"schema": {"properties": {"event": {"type": "string"}}}, "requestable": False})
    return registry


def create_app(db_url: str = "") -> FastAPI:
    adapter = SQLAlchemyAdapter(db_url) if db_url else MemoryAdapter()
    registry = create_registry()
    Author = registry.get_model("author")

    app = FastAPI(title="restmodel demo")
    api = RestModelAPI(app, registry, adapter, prefix="/api")

    # POST /api/authors?name=... creates an author without a json:api body
    @api.shadow("author", "POST")
    async def author_from_query(request: Request):
        name = request.query_params.get("name")
        return None if name is None else Author({"name": name})

    api.expose_all()

    async def stats():
        return {name: len(await adapter.find(name)) for name in ("author", "book")}

    api.add_route("GET", "/stats", stats)

    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok", "docs": "/docs", "openapi": "/openapi.json"}

    return app


app = create_app(sys.argv[1] if len(sys.argv) > 1 else "")

if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)
