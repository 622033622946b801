from copy import deepcopy
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from fastapi.encoders import jsonable_encoder

from .jsonapi_types import JSONAPIResourceObject

if TYPE_CHECKING:  # pragma: no cover
    from .adapters.base import Adapter

InstanceId = Union[str, int]


class ModelInstance:
    """
    An identified object of a registered model type.
    (type, id) is the durable identity, the id is assigned by the adapter when the instance is created
    """

    def __init__(self, type: str, attributes: Optional[Dict[str, Any]] = None, id: Optional[InstanceId] = None) -> None:
        self.type = type
        self.id = id
        self.attributes: Dict[str, Any] = dict(attributes or {})

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.type}:{self.id}>"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ModelInstance):
            return NotImplemented
        return (self.type, self.id, self.attributes) == (other.type, other.id, other.attributes)

    @property
    def jsonapi_id(self) -> Optional[str]:
        return None if self.id is None else str(self.id)

    def copy(self) -> "ModelInstance":
        """
        :return: a copy that shares no mutable attribute values with this instance
        """
        return self.__class__(self.type, deepcopy(self.attributes), self.id)

    async def save(self, adapter: "Adapter") -> "ModelInstance":
        """
        Persist the instance: create it when it has no id yet, update it otherwise
        :param adapter: storage adapter
        :return: the stored instance
        """
        if self.id is None:
            stored = await adapter.create(self)
        else:
            stored = await adapter.update(self)
            if stored is None:
                stored = await adapter.create(self)
        self.id = stored.id
        self.attributes = dict(stored.attributes)
        return self

    def to_resource(self) -> JSONAPIResourceObject:
        """
        :return: json:api resource object, the attributes exclude "type" and "id"
        """
        attributes = {key: value for key, value in self.attributes.items() if key not in ("type", "id")}
        return {
            "type": self.type,
            "id": str(self.id),
            "attributes": jsonable_encoder(attributes),
        }
