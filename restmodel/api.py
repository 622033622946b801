# -*- coding: utf-8 -*-

from http import HTTPStatus
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

import restmodel
from .adapters.base import Adapter
from .config import get_config
from .documents import CollectionDocument, JsonApiErrorDocument, SingleDocument, example_document
from .errors import GenericError, JsonapiError, StructuralError
from .instance import ModelInstance
from .pipeline import PipelineResult, RequestContext, RequestPipeline
from .registry import ModelClass, ModelRegistry
from .responses import JSONAPIResponse, error_response, http_error_object
from .schema import PropertyType
from .util import with_slash_parity

ShadowResolver = Callable[[Request], Awaitable[Optional[ModelInstance]]]

SHADOW_METHODS = {"GET", "POST", "PATCH", "DELETE"}

EXAMPLE_VALUES = {
    PropertyType.STRING.value: "string",
    PropertyType.NUMBER.value: 0,
    PropertyType.BOOLEAN.value: True,
    PropertyType.DATE.value: "2020-01-01T00:00:00",
}


def install_jsonapi_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(JsonapiError)
    async def _jsonapi_error_handler(_request: Request, exc: JsonapiError):
        return error_response(exc.status_code, [exc.error_object()])

    @app.exception_handler(RequestValidationError)
    async def _jsonapi_validation_error_handler(_request: Request, exc: RequestValidationError):
        # reported as a malformed request, like the body errors raised by the pipeline
        errors = [http_error_object(HTTPStatus.BAD_REQUEST.value, error.get("msg", "Validation error")) for error in exc.errors()]
        return error_response(HTTPStatus.BAD_REQUEST.value, errors)

    @app.exception_handler(StarletteHTTPException)
    async def _jsonapi_starlette_http_error_handler(_request: Request, exc: StarletteHTTPException):
        status_code = int(exc.status_code)
        return error_response(status_code, [http_error_object(status_code, exc.detail)], headers=getattr(exc, "headers", None))


class RestModelAPI:
    """
    Generates the json:api routes of the requestable models in a registry
    :param app: FastAPI application
    :param registry: model registry
    :param adapter: storage adapter
    :param prefix: url prefix of the generated routes, defaults to the BASE_URL config
    """

    def __init__(
        self,
        app: FastAPI,
        registry: ModelRegistry,
        adapter: Adapter,
        prefix: Optional[str] = None,
    ) -> None:
        self.app = app
        self.registry = registry
        self.adapter = adapter
        if prefix is None:
            prefix = str(get_config("BASE_URL") or "")
        self.prefix = prefix.rstrip("/")
        self.pipeline = RequestPipeline(registry, adapter)
        self._shadows: Dict[Tuple[str, str], ShadowResolver] = {}
        self._exposed: List[str] = []
        install_jsonapi_exception_handlers(app)

    @property
    def exposed(self) -> List[str]:
        """
        :return: names of the models with generated routes
        """
        return list(self._exposed)

    def add_route(
        self,
        method: str,
        path: str,
        endpoint: Callable[..., Any],
        skip_prefix: bool = False,
        **kwargs: Any,
    ) -> None:
        """
        Register a custom route
        :param method: HTTP method
        :param path: route path, the api prefix is prepended unless `skip_prefix` is set
        :param endpoint: FastAPI endpoint
        :param kwargs: additional `add_api_route` arguments
        """
        full_path = path if skip_prefix else self.prefix + path
        restmodel.log.info(f"Adding custom route {method.upper()} {full_path}")
        self.app.add_api_route(full_path, endpoint, methods=[method.upper()], **kwargs)
        # FastAPI may have cached the OpenAPI document already
        self.app.openapi_schema = None

    def shadow(self, name: str, *methods: str) -> Callable[[ShadowResolver], ShadowResolver]:
        """
        Decorator registering a resolver that builds the instance of a generated route itself.
        When the resolver returns an instance the body parsing and validation are skipped:

            @api.shadow("upload", "POST")
            async def build_upload(request):
                form = await request.form()
                return Upload({"filename": form["file"].filename})
        """
        model = self.registry.get_model(name)
        if model is None:
            raise StructuralError(f'Cannot shadow unknown model "{name}"', HTTPStatus.INTERNAL_SERVER_ERROR.value)
        methods = tuple(method.upper() for method in methods) or tuple(sorted(SHADOW_METHODS))
        invalid = set(methods) - SHADOW_METHODS
        if invalid:
            raise StructuralError(f"Invalid shadow methods {sorted(invalid)}", HTTPStatus.INTERNAL_SERVER_ERROR.value)

        def decorator(resolver: ShadowResolver) -> ShadowResolver:
            for method in methods:
                self._shadows[(model.name.lower(), method)] = resolver
            return resolver

        return decorator

    async def _pre_resolve(self, model: ModelClass, request: Request) -> Optional[ModelInstance]:
        resolver = self._shadows.get((model.name.lower(), request.method.upper()))
        if resolver is None:
            return None
        return await resolver(request)

    def expose_all(self) -> None:
        """
        Generate the routes of all requestable models and seal the registry
        """
        for model in self.registry.requestable_models():
            if model.name not in self._exposed:
                self.expose_object(model.name)
        self.registry.seal()

    def expose_object(self, name: str) -> None:
        """
        Register the CRUD and relationship routes of a model
        """
        model = self.registry.get_model(name)
        if model is None:
            raise StructuralError(f'Cannot expose unknown model "{name}"', HTTPStatus.INTERNAL_SERVER_ERROR.value)
        if not model.requestable:
            raise StructuralError(f'Refusing to expose "{model.name}": model is not requestable', HTTPStatus.INTERNAL_SERVER_ERROR.value)
        if model.name in self._exposed:
            raise StructuralError(f'Model "{model.name}" is already exposed', HTTPStatus.INTERNAL_SERVER_ERROR.value)

        tag = model.collection_name
        router = APIRouter(prefix=self.prefix, tags=[tag])
        collection_path = "/" + model.collection_name
        instance_path = collection_path + "/{object_id}"
        relation_path = instance_path + "/{relation}"
        error_responses = self._error_responses()
        example = example_document(model.name, self._example_attributes(model))

        self._add_route_with_slash_parity(
            router,
            collection_path,
            self._list_collection(model),
            "GET",
            f"List {tag}",
            error_responses,
            response_model=CollectionDocument,
        )
        self._add_route_with_slash_parity(
            router,
            collection_path,
            self._post_collection(model),
            "POST",
            f"Create {model.name}",
            error_responses,
            status_code=HTTPStatus.CREATED.value,
            response_model=SingleDocument,
            openapi_extra=self._openapi_request_body(example),
        )
        self._add_route_with_slash_parity(
            router,
            instance_path,
            self._get_instance(model),
            "GET",
            f"Get {model.name} by id",
            error_responses,
            response_model=SingleDocument,
        )
        self._add_route_with_slash_parity(
            router,
            instance_path,
            self._patch_instance(model),
            "PATCH",
            f"Update {model.name}",
            error_responses,
            response_model=SingleDocument,
            openapi_extra=self._openapi_request_body(example),
        )
        self._add_route_with_slash_parity(
            router,
            instance_path,
            self._delete_instance(model),
            "DELETE",
            f"Delete {model.name}",
            error_responses,
            status_code=HTTPStatus.NO_CONTENT.value,
        )
        self._add_route_with_slash_parity(
            router,
            relation_path,
            self._get_related(model),
            "GET",
            f"Get {model.name} related instances",
            error_responses,
            response_model=CollectionDocument,
        )

        self.app.include_router(router)
        self.app.openapi_schema = None
        self._exposed.append(model.name)
        restmodel.log.info(f"Exposing {model.name} on {self.prefix}{collection_path}")

    @staticmethod
    def _add_route_with_slash_parity(
        router: APIRouter,
        path: str,
        endpoint: Callable[..., Any],
        method: str,
        summary: str,
        responses: Dict[Union[int, str], Dict[str, Any]],
        status_code: Optional[int] = None,
        response_model: Optional[Any] = None,
        openapi_extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        for idx, variant in enumerate(with_slash_parity(path)):
            router.add_api_route(
                variant,
                endpoint,
                methods=[method],
                response_class=JSONAPIResponse,
                summary=summary,
                include_in_schema=idx == 0,
                status_code=status_code,
                response_model=response_model,
                responses=responses,
                openapi_extra=openapi_extra,
            )

    @staticmethod
    def _example_attributes(model: ModelClass) -> Dict[str, Any]:
        return {name: EXAMPLE_VALUES.get(spec.type or "", "") for name, spec in model.schema.properties.items()}

    @staticmethod
    def _openapi_request_body(example: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "requestBody": {
                "required": True,
                "content": {str(get_config("JSONAPI_MEDIA_TYPE")): {"schema": {"type": "object"}, "example": example}},
            }
        }

    @staticmethod
    def _error_responses() -> Dict[Union[int, str], Dict[str, Any]]:
        return {
            HTTPStatus.BAD_REQUEST.value: {"description": HTTPStatus.BAD_REQUEST.phrase, "model": JsonApiErrorDocument},
            HTTPStatus.NOT_FOUND.value: {"description": HTTPStatus.NOT_FOUND.phrase, "model": JsonApiErrorDocument},
            HTTPStatus.CONFLICT.value: {"description": HTTPStatus.CONFLICT.phrase, "model": JsonApiErrorDocument},
            HTTPStatus.INTERNAL_SERVER_ERROR.value: {"description": HTTPStatus.INTERNAL_SERVER_ERROR.phrase, "model": JsonApiErrorDocument},
        }

    async def _run(
        self,
        operation: Callable[[RequestContext], Awaitable[PipelineResult]],
        model: ModelClass,
        request: Request,
        object_id: Optional[str] = None,
        relation: Optional[str] = None,
    ) -> Response:
        try:
            pre_resolved = await self._pre_resolve(model, request)
            body = None
            if pre_resolved is None and request.method.upper() in ("POST", "PATCH"):
                body = await request.body()
            ctx = RequestContext(
                type_name=model.name,
                method=request.method.upper(),
                object_id=object_id,
                relation=relation,
                body=body,
                pre_resolved=pre_resolved,
                base_url=self.prefix,
            )
            result = await operation(ctx)
            if result.document is None:
                return Response(status_code=result.status_code, headers=result.headers)
            # JSONResponse renders the content in its constructor
            return JSONAPIResponse(status_code=result.status_code, content=result.document, headers=result.headers)
        except JsonapiError:
            raise
        except Exception as exc:
            raise GenericError(exc) from exc

    #
    # Endpoints, one closure per model and route
    #
    def _list_collection(self, model: ModelClass):
        async def handler(request: Request):
            return await self._run(self.pipeline.list, model, request)

        handler.__doc__ = f"Returns a collection of {model.name} instances"
        return handler

    def _post_collection(self, model: ModelClass):
        async def handler(request: Request):
            return await self._run(self.pipeline.create, model, request)

        handler.__doc__ = f"Creates a {model.name} instance"
        return handler

    def _get_instance(self, model: ModelClass):
        async def handler(object_id: str, request: Request):
            return await self._run(self.pipeline.fetch, model, request, object_id=object_id)

        handler.__doc__ = f"Returns the {model.name} instance with the given id"
        return handler

    def _patch_instance(self, model: ModelClass):
        async def handler(object_id: str, request: Request):
            return await self._run(self.pipeline.update, model, request, object_id=object_id)

        handler.__doc__ = "Updates the attributes present in the body, other attributes are preserved"
        return handler

    def _delete_instance(self, model: ModelClass):
        async def handler(object_id: str, request: Request):
            return await self._run(self.pipeline.delete, model, request, object_id=object_id)

        handler.__doc__ = f"Deletes the {model.name} instance with the given id"
        return handler

    def _get_related(self, model: ModelClass):
        async def handler(object_id: str, relation: str, request: Request):
            return await self._run(self.pipeline.related, model, request, object_id=object_id, relation=relation)

        relations = ", ".join(model.schema.relationships) or "none"
        handler.__doc__ = f"Returns the instances related to a {model.name} (relationships: {relations})"
        return handler

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} prefix={self.prefix!r} models={self._exposed}>"

    def expose(self, *names: str) -> None:
        """
        Expose multiple models at once
        """
        for name in names:
            self.expose_object(name)
