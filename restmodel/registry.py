"""Model registry.

Models are registered by name on an explicitly constructed :class:`ModelRegistry`::

    registry = ModelRegistry()
    Test = registry.register_model("test", {"schema": {"properties": {"name": {"type": "string", "required": True}}}})
    instance = Test({"name": "test"})
    await instance.save(adapter)

Names are unique under case-insensitive comparison, lookups are case-insensitive too.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional

import restmodel
from .errors import StructuralError
from .instance import InstanceId, ModelInstance
from .schema import DEFINITION_ERROR, Schema
from .util import pluralize
from .validator import validate


@dataclass(frozen=True)
class ModelDefinition:
    """Immutable definition of a registered model"""

    name: str
    schema: Schema
    requestable: bool = True

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def collection_name(self) -> str:
        """
        :return: url segment of the model, eg. "tests" for "test"
        """
        return pluralize(self.name)

    @classmethod
    def from_definition(cls, name: str, definition: Any) -> "ModelDefinition":
        """
        :param name: model name
        :param definition: ModelDefinition, Schema or mapping {"schema": {...}, "requestable": bool}
        """
        if isinstance(definition, ModelDefinition):
            if definition.name.lower() != name.lower():
                raise StructuralError(f'Definition of "{definition.name}" registered as "{name}"', DEFINITION_ERROR)
            return definition
        if isinstance(definition, Schema):
            return cls(name=name, schema=definition)
        if not isinstance(definition, Mapping):
            raise StructuralError(f'Invalid definition for model "{name}"', DEFINITION_ERROR)
        if "properties" in definition and "schema" not in definition:
            # the schema was passed without the definition envelope
            return cls(name=name, schema=Schema.from_dict(definition))
        schema = definition.get("schema")
        if not isinstance(schema, (Mapping, Schema)):
            raise StructuralError(f'Model "{name}" requires a schema with "properties"', DEFINITION_ERROR)
        return cls(name=name, schema=Schema.from_dict(schema), requestable=bool(definition.get("requestable", True)))


class ModelClass:
    """
    Constructor bound to a model definition:
    calling it with raw attributes validates them and returns a ModelInstance
    """

    def __init__(self, definition: ModelDefinition) -> None:
        self.definition = definition

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"

    def __call__(self, attributes: Optional[Mapping[str, Any]] = None, id: Optional[InstanceId] = None) -> ModelInstance:
        attributes = self.validate({} if attributes is None else attributes)
        return ModelInstance(self.name, attributes, id)

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def schema(self) -> Schema:
        return self.definition.schema

    @property
    def requestable(self) -> bool:
        return self.definition.requestable

    @property
    def collection_name(self) -> str:
        return self.definition.collection_name

    def validate(self, attributes: Any, apply_defaults: bool = True) -> Dict[str, Any]:
        return validate(attributes, self.schema, apply_defaults=apply_defaults)


class ModelRegistry:
    """
    Model definitions keyed by lower-cased name.
    The registry is configured during application setup and sealed when the routes are generated
    """

    def __init__(self) -> None:
        self._models: Dict[str, ModelClass] = {}
        self._sealed = False

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._models

    def __iter__(self) -> Iterator[ModelClass]:
        return iter(list(self._models.values()))

    def __len__(self) -> int:
        return len(self._models)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """
        Prevent further registrations, called after route generation
        """
        self._sealed = True

    def register_model(self, name: str, definition: Any) -> ModelClass:
        """
        Register a model
        :param name: model name, unique under case-insensitive comparison
        :param definition: ModelDefinition, Schema or mapping {"schema": {"properties": ..., "relationships": ...}, "requestable": bool}
        :return: the model constructor
        :raises StructuralError: duplicate name, missing properties or sealed registry
        """
        if self._sealed:
            raise StructuralError(f'Cannot register "{name}": the registry is sealed', DEFINITION_ERROR)
        if not isinstance(name, str) or not name:
            raise StructuralError("Model name must be a non-empty string", DEFINITION_ERROR)
        if name.lower() in self._models:
            raise StructuralError(f'Model "{name}" is already registered', DEFINITION_ERROR)

        model_def = ModelDefinition.from_definition(name, definition)
        for prop_name, prop_type in model_def.schema.unknown_types().items():
            restmodel.log.warning(f'Model "{name}" property "{prop_name}" has unknown type "{prop_type}"')

        model = ModelClass(model_def)
        self._models[model_def.key] = model
        restmodel.log.info(f'Registered model "{name}" (requestable: {model_def.requestable})')
        return model

    def get_model(self, name: str) -> Optional[ModelClass]:
        """
        :param name: model name (case-insensitive)
        :return: model constructor or None
        """
        if not isinstance(name, str):
            return None
        return self._models.get(name.lower())

    def get_definition(self, name: str) -> Optional[ModelDefinition]:
        model = self.get_model(name)
        return None if model is None else model.definition

    def requestable_models(self) -> List[ModelClass]:
        return [model for model in self._models.values() if model.requestable]
