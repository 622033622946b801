# -*- coding: utf-8 -*-

"""Storage adapter contract.

Adapters persist model instances keyed by (type, id). All operations are
coroutines and must support interleaved calls from concurrent requests.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from ..errors import AdapterError
from ..instance import InstanceId, ModelInstance


class Adapter(ABC):
    """Base class of the storage adapters"""

    @staticmethod
    def check_type(type_: Any) -> str:
        if not isinstance(type_, str) or not type_:
            raise AdapterError(f"Invalid type {type_!r}")
        return type_

    @staticmethod
    def check_id(id_: Any) -> str:
        """
        :return: the id in its storage (string) form
        """
        if isinstance(id_, bool) or not isinstance(id_, (str, int)) or str(id_) == "":
            raise AdapterError(f"Invalid id {id_!r}")
        return str(id_)

    @classmethod
    def check_instance(cls, instance: Any) -> ModelInstance:
        if not isinstance(instance, ModelInstance):
            raise AdapterError(f"Invalid instance {instance!r}")
        if not instance.type:
            raise AdapterError("Instance has no type")
        cls.check_type(instance.type)
        return instance

    @abstractmethod
    async def create(self, instance: ModelInstance) -> ModelInstance:
        """
        Store a new instance, an id is assigned when the instance has none
        :raises AdapterError: the instance has no type or the id is already in use
        """

    @abstractmethod
    async def get(self, type_: str, id_: InstanceId) -> Optional[ModelInstance]:
        """
        :return: the stored instance or None
        :raises AdapterError: malformed type or id
        """

    @abstractmethod
    async def update(self, instance: ModelInstance) -> Optional[ModelInstance]:
        """
        Replace the stored attributes of an existing instance
        :return: the updated instance or None if it doesn't exist
        """

    @abstractmethod
    async def delete(self, type_: str, id_: InstanceId) -> bool:
        """
        :return: False if the instance doesn't exist
        """

    @abstractmethod
    async def find(self, type_: str) -> List[ModelInstance]:
        """
        :return: all instances of `type_`
        """

    @abstractmethod
    async def find_by(self, type_: str, key: str, value: Any) -> List[ModelInstance]:
        """
        Relationship query
        :return: the instances of `type_` whose attribute `key` equals `value` (compared as strings)
        """

    @staticmethod
    def matches(instance: ModelInstance, key: str, value: Any) -> bool:
        attr = instance.attributes.get(key)
        return attr is not None and value is not None and str(attr) == str(value)
