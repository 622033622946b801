# flake8: noqa: F401
#
# The logger and the configuration class are imported first, the other modules refer to restmodel.log
#
from .restmodel_init import log, RESTMODEL
from .errors import (
    JsonapiError,
    StructuralError,
    ValidationError,
    ConflictError,
    NotFoundError,
    AdapterError,
    GenericError,
)
from .schema import Schema, PropertySpec, RelationshipSpec, PropertyType, MISSING
from .validator import validate, check_type
from .instance import ModelInstance
from .registry import ModelRegistry, ModelDefinition, ModelClass
from .adapters import Adapter, MemoryAdapter, SQLAlchemyAdapter
from .pipeline import RequestPipeline, RequestContext, PipelineResult, Stage
from .api import RestModelAPI
from .responses import JSONAPIResponse
from .__about__ import __version__, __description__

__all__ = (
    "__version__",
    "__description__",
    #
    "RestModelAPI",
    "RESTMODEL",
    "log",
    # models:
    "ModelRegistry",
    "ModelDefinition",
    "ModelClass",
    "ModelInstance",
    "Schema",
    "PropertySpec",
    "RelationshipSpec",
    "PropertyType",
    "MISSING",
    "validate",
    "check_type",
    # storage:
    "Adapter",
    "MemoryAdapter",
    "SQLAlchemyAdapter",
    # request processing:
    "RequestPipeline",
    "RequestContext",
    "PipelineResult",
    "Stage",
    "JSONAPIResponse",
    # Errors:
    "JsonapiError",
    "StructuralError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "AdapterError",
    "GenericError",
)
