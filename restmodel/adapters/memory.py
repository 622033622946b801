# -*- coding: utf-8 -*-

import itertools
from http import HTTPStatus
from typing import Any, Dict, Iterator, List, Optional

import restmodel
from .base import Adapter
from ..errors import AdapterError
from ..instance import InstanceId, ModelInstance


class MemoryAdapter(Adapter):
    """
    Reference adapter: one dict per type, ids are generated by a counter.
    The counter is advanced without awaiting so concurrent creates can't get the same id
    """

    def __init__(self) -> None:
        self._stores: Dict[str, Dict[str, ModelInstance]] = {}
        self._counter: Iterator[int] = itertools.count(1)

    def _store(self, type_: str, create: bool = False) -> Dict[str, ModelInstance]:
        """
        :param create: add the store of a type that has no instances yet
        """
        if create:
            return self._stores.setdefault(type_, {})
        return self._stores.get(type_, {})

    def _next_id(self, store: Dict[str, ModelInstance]) -> int:
        id_ = next(self._counter)
        while str(id_) in store:
            id_ = next(self._counter)
        return id_

    async def create(self, instance: ModelInstance) -> ModelInstance:
        self.check_instance(instance)
        store = self._store(instance.type, create=True)
        if instance.id is None:
            instance.id = self._next_id(store)
        key = self.check_id(instance.id)
        if key in store:
            raise AdapterError(f'{instance.type} "{key}" already exists', HTTPStatus.CONFLICT.value)
        store[key] = instance.copy()
        restmodel.log.debug(f"Created {instance}")
        return instance.copy()

    async def get(self, type_: str, id_: InstanceId) -> Optional[ModelInstance]:
        store = self._store(self.check_type(type_))
        stored = store.get(self.check_id(id_))
        return None if stored is None else stored.copy()

    async def update(self, instance: ModelInstance) -> Optional[ModelInstance]:
        self.check_instance(instance)
        store = self._store(instance.type)
        key = self.check_id(instance.id)
        if key not in store:
            return None
        store[key] = instance.copy()
        restmodel.log.debug(f"Updated {instance}")
        return instance.copy()

    async def delete(self, type_: str, id_: InstanceId) -> bool:
        store = self._store(self.check_type(type_))
        removed = store.pop(self.check_id(id_), None)
        return removed is not None

    async def find(self, type_: str) -> List[ModelInstance]:
        store = self._store(self.check_type(type_))
        return [instance.copy() for instance in store.values()]

    async def find_by(self, type_: str, key: str, value: Any) -> List[ModelInstance]:
        store = self._store(self.check_type(type_))
        return [instance.copy() for instance in store.values() if self.matches(instance, key, value)]
