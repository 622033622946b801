# -*- coding: utf-8 -*-

"""Generic request processing.

Every generated route runs the same stages::

    RESOLVE_TYPE -> PARSE_BODY -> VALIDATE_TYPE_MATCH -> VALIDATE_SCHEMA -> PERSIST -> SERIALIZE -> RESPOND

PARSE_BODY and the two validation stages only run for POST and PATCH. Each
stage either hands over to the next one or raises a JsonapiError, which ends
the request with an error document.

A RequestContext may carry a pre-resolved instance (built by a shadow resolver
or a custom route). The body stages are skipped and the instance is persisted
or serialized as is.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Any, Dict, List, Optional, Tuple

import pydantic

import restmodel
from .adapters.base import Adapter
from .documents import ResourceData, ResourceDocument
from .errors import ConflictError, NotFoundError, StructuralError
from .instance import ModelInstance
from .jsonapi_types import JSONAPIDocument
from .registry import ModelClass, ModelRegistry
from .responses import jsonapi_document
from .schema import RelationshipSpec


class Stage(str, Enum):
    RESOLVE_TYPE = "resolve_type"
    PARSE_BODY = "parse_body"
    VALIDATE_TYPE_MATCH = "validate_type_match"
    VALIDATE_SCHEMA = "validate_schema"
    PERSIST = "persist"
    SERIALIZE = "serialize"
    RESPOND = "respond"


@dataclass(frozen=True)
class RequestContext:
    """
    Input of a pipeline run
    :param type_name: model name resolved from the url
    :param method: HTTP method
    :param object_id: id path parameter of item and descendant routes
    :param relation: relationship path parameter of descendant routes
    :param body: raw request body (POST, PATCH)
    :param pre_resolved: instance built upstream, replaces body parsing and validation
    :param base_url: url prefix, used for the Location header
    """

    type_name: str
    method: str
    object_id: Optional[str] = None
    relation: Optional[str] = None
    body: Optional[bytes] = None
    pre_resolved: Optional[ModelInstance] = None
    base_url: str = ""

    def __str__(self) -> str:
        path = "/".join(str(part) for part in (self.type_name, self.object_id, self.relation) if part is not None)
        return f"{self.method} {path}"


@dataclass
class PipelineResult:
    status_code: int
    document: Optional[JSONAPIDocument] = None
    headers: Dict[str, str] = field(default_factory=dict)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity can't be rendered in a response
    raise ValueError(f"non-finite number {name}")


class RequestPipeline:
    """
    Model independent CRUD and relationship read processing
    :param registry: model registry used to resolve the url types
    :param adapter: storage adapter
    """

    def __init__(self, registry: ModelRegistry, adapter: Adapter) -> None:
        self.registry = registry
        self.adapter = adapter

    @staticmethod
    def _enter(ctx: RequestContext, stage: Stage) -> None:
        restmodel.log.debug(f"{ctx}: {stage.value}")

    #
    # Stages
    #
    def resolve_type(self, ctx: RequestContext) -> ModelClass:
        self._enter(ctx, Stage.RESOLVE_TYPE)
        model = self.registry.get_model(ctx.type_name)
        if model is None or not model.requestable:
            raise NotFoundError(f'Unknown type "{ctx.type_name}"')
        if ctx.pre_resolved is not None and ctx.pre_resolved.type != model.name:
            raise ConflictError(f'Pre-resolved instance type "{ctx.pre_resolved.type}" does not match "{model.name}"')
        return model

    def resolve_relation(self, ctx: RequestContext, model: ModelClass) -> Tuple[RelationshipSpec, ModelClass]:
        """
        :return: the relationship of `model` named in the url and its target model
        """
        rel = model.schema.relationships.get(ctx.relation or "")
        if rel is None:
            raise NotFoundError(f'Unknown relationship "{ctx.relation}" on "{model.name}"')
        target = self.registry.get_model(rel.target_type)
        if target is None or not target.requestable:
            raise NotFoundError(f'Relationship "{ctx.relation}" targets unknown type "{rel.target_type}"')
        return rel, target

    def parse_body(self, ctx: RequestContext) -> ResourceData:
        self._enter(ctx, Stage.PARSE_BODY)
        if not ctx.body:
            raise StructuralError("Missing request body")
        try:
            payload = json.loads(ctx.body, parse_constant=_reject_constant)
        except (ValueError, UnicodeDecodeError) as exc:
            raise StructuralError(f"Invalid JSON body: {exc}") from exc
        if not isinstance(payload, dict):
            raise StructuralError("Invalid JSON:API payload (expected object)")
        try:
            document = ResourceDocument.model_validate(payload)
        except pydantic.ValidationError as exc:
            details = "; ".join(
                "{}: {}".format(".".join(str(loc) for loc in error.get("loc", ())), error.get("msg")) for error in exc.errors()
            )
            raise StructuralError(f"Invalid JSON:API payload ({details})") from exc
        return document.data

    def check_type_match(self, ctx: RequestContext, model: ModelClass, data: ResourceData) -> None:
        self._enter(ctx, Stage.VALIDATE_TYPE_MATCH)
        if data.type != model.name:
            raise ConflictError(f'Invalid type "{data.type}": expected "{model.name}"')
        if ctx.object_id is not None and data.id is not None and str(data.id) != str(ctx.object_id):
            raise ConflictError(f'Body id "{data.id}" does not match url id "{ctx.object_id}"')

    def check_pre_resolved_id(self, ctx: RequestContext) -> ModelInstance:
        """
        :return: the pre-resolved instance of an item route, its id defaults to the url id
        """
        instance = ctx.pre_resolved
        if instance.id is None:
            instance.id = ctx.object_id
        elif str(instance.id) != str(ctx.object_id):
            raise ConflictError(f'Pre-resolved id "{instance.id}" does not match url id "{ctx.object_id}"')
        return instance

    async def load(self, ctx: RequestContext, model: ModelClass) -> ModelInstance:
        instance = await self.adapter.get(model.name, ctx.object_id)
        if instance is None:
            raise NotFoundError(f'Invalid "{model.name}" ID "{ctx.object_id}"')
        return instance

    def serialize(self, ctx: RequestContext, data: Any) -> JSONAPIDocument:
        self._enter(ctx, Stage.SERIALIZE)
        if isinstance(data, list):
            return jsonapi_document(data=[instance.to_resource() for instance in data], meta={"count": len(data)})
        return jsonapi_document(data=data.to_resource())

    def respond(self, ctx: RequestContext, status_code: int, document: Optional[JSONAPIDocument] = None, headers: Optional[Dict[str, str]] = None) -> PipelineResult:
        self._enter(ctx, Stage.RESPOND)
        return PipelineResult(status_code, document, headers or {})

    #
    # Operations
    #
    async def create(self, ctx: RequestContext) -> PipelineResult:
        model = self.resolve_type(ctx)
        if ctx.pre_resolved is not None:
            self._enter(ctx, Stage.PERSIST)
            instance = await self.adapter.create(ctx.pre_resolved)
        else:
            data = self.parse_body(ctx)
            self.check_type_match(ctx, model, data)
            self._enter(ctx, Stage.VALIDATE_SCHEMA)
            instance = model(data.attributes, id=data.id)
            self._enter(ctx, Stage.PERSIST)
            instance = await self.adapter.create(instance)
        document = self.serialize(ctx, instance)
        location = f"{ctx.base_url}/{model.collection_name}/{instance.jsonapi_id}"
        return self.respond(ctx, HTTPStatus.CREATED.value, document, {"Location": location})

    async def list(self, ctx: RequestContext) -> PipelineResult:
        model = self.resolve_type(ctx)
        self._enter(ctx, Stage.PERSIST)
        instances: List[ModelInstance] = await self.adapter.find(model.name)
        return self.respond(ctx, HTTPStatus.OK.value, self.serialize(ctx, instances))

    async def fetch(self, ctx: RequestContext) -> PipelineResult:
        model = self.resolve_type(ctx)
        self._enter(ctx, Stage.PERSIST)
        instance = ctx.pre_resolved if ctx.pre_resolved is not None else await self.load(ctx, model)
        return self.respond(ctx, HTTPStatus.OK.value, self.serialize(ctx, instance))

    async def update(self, ctx: RequestContext) -> PipelineResult:
        model = self.resolve_type(ctx)
        if ctx.pre_resolved is not None:
            instance = self.check_pre_resolved_id(ctx)
            self._enter(ctx, Stage.PERSIST)
            updated = await self.adapter.update(instance)
            if updated is None:
                raise NotFoundError(f'Invalid "{model.name}" ID "{ctx.object_id}"')
            return self.respond(ctx, HTTPStatus.OK.value, self.serialize(ctx, updated))

        data = self.parse_body(ctx)
        self.check_type_match(ctx, model, data)
        existing = await self.load(ctx, model)
        self._enter(ctx, Stage.VALIDATE_SCHEMA)
        merged = dict(existing.attributes)
        merged.update(data.attributes)
        # attributes that are not patched keep their value, defaults are not applied again
        existing.attributes = model.validate(merged, apply_defaults=False)
        self._enter(ctx, Stage.PERSIST)
        instance = await self.adapter.update(existing)
        if instance is None:
            raise NotFoundError(f'Invalid "{model.name}" ID "{ctx.object_id}"')
        return self.respond(ctx, HTTPStatus.OK.value, self.serialize(ctx, instance))

    async def delete(self, ctx: RequestContext) -> PipelineResult:
        model = self.resolve_type(ctx)
        self._enter(ctx, Stage.PERSIST)
        object_id = self.check_pre_resolved_id(ctx).id if ctx.pre_resolved is not None else ctx.object_id
        if not await self.adapter.delete(model.name, object_id):
            raise NotFoundError(f'Invalid "{model.name}" ID "{object_id}"')
        return self.respond(ctx, HTTPStatus.NO_CONTENT.value)

    async def related(self, ctx: RequestContext) -> PipelineResult:
        model = self.resolve_type(ctx)
        rel, target = self.resolve_relation(ctx, model)
        self._enter(ctx, Stage.PERSIST)
        ancestor = ctx.pre_resolved if ctx.pre_resolved is not None else await self.load(ctx, model)
        instances = await self.adapter.find_by(target.name, rel.foreign_key, ancestor.id)
        if not rel.has_many:
            instances = instances[:1]
        return self.respond(ctx, HTTPStatus.OK.value, self.serialize(ctx, instances))
