# -*- coding: utf-8 -*-

"""SQLAlchemy storage adapter.

All model types share one table, the attributes are stored in a JSON column::

    engine = create_engine("sqlite:///./restmodel.db", future=True)
    adapter = SQLAlchemyAdapter(engine)

Sessions are synchronous: every operation runs in the starlette threadpool,
like the plain ``def`` endpoints FastAPI runs for a SQLAlchemy session, so a
slow query only holds up the request that issued it. Each operation uses
its own session and transaction.
"""

from http import HTTPStatus
from typing import Any, List, Optional, Union

from fastapi.encoders import jsonable_encoder
from sqlalchemy import JSON, Boolean, Column, Integer, String, UniqueConstraint, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from starlette.concurrency import run_in_threadpool

import restmodel
from .base import Adapter
from ..errors import AdapterError
from ..instance import InstanceId, ModelInstance

Base = declarative_base()


class ResourceRow(Base):
    __tablename__ = "restmodel_resources"
    __table_args__ = (UniqueConstraint("type", "object_id", name="uq_restmodel_type_id"),)

    pk = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(128), nullable=False, index=True)
    object_id = Column(String(128), nullable=True)
    attributes = Column(JSON, nullable=False, default=dict)
    # ids are stored as strings, integer ids are restored on load
    int_id = Column(Boolean, nullable=False, default=False)

    def to_instance(self) -> ModelInstance:
        object_id: InstanceId = int(self.object_id) if self.int_id else self.object_id
        return ModelInstance(self.type, dict(self.attributes or {}), object_id)


class SQLAlchemyAdapter(Adapter):
    """
    :param engine: SQLAlchemy engine or database url
    :param create_tables: create the resource table if it doesn't exist
    """

    def __init__(self, engine: Union[Engine, str], create_tables: bool = True) -> None:
        if isinstance(engine, str):
            engine = create_engine(engine, future=True)
        self.engine = engine
        self.Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
        if create_tables:
            Base.metadata.create_all(engine)

    @staticmethod
    def _row(session: Session, type_: str, key: str) -> Optional[ResourceRow]:
        stmt = select(ResourceRow).where(ResourceRow.type == type_, ResourceRow.object_id == key)
        return session.execute(stmt).scalars().first()

    @staticmethod
    def _encode(attributes: Any) -> Any:
        return jsonable_encoder(attributes)

    #
    # Blocking implementations, called in a worker thread
    #
    def _create(self, instance: ModelInstance) -> ModelInstance:
        try:
            with self.Session.begin() as session:
                if instance.id is not None:
                    key = self.check_id(instance.id)
                    if self._row(session, instance.type, key) is not None:
                        raise AdapterError(f'{instance.type} "{key}" already exists', HTTPStatus.CONFLICT.value)
                    row = ResourceRow(
                        type=instance.type,
                        object_id=key,
                        int_id=isinstance(instance.id, int),
                        attributes=self._encode(instance.attributes),
                    )
                    session.add(row)
                else:
                    row = ResourceRow(type=instance.type, object_id=None, int_id=True, attributes=self._encode(instance.attributes))
                    session.add(row)
                    session.flush()
                    candidate = row.pk
                    # explicit ids may already occupy the generated value
                    while self._row(session, instance.type, str(candidate)) is not None:
                        candidate += 1
                    row.object_id = str(candidate)
                    instance.id = candidate
                result = row.to_instance()
        except SQLAlchemyError as exc:
            restmodel.log.exception(exc)
            raise AdapterError(f"Failed to create {instance.type}: {exc}")
        restmodel.log.debug(f"Created {result}")
        return result

    def _get(self, type_: str, key: str) -> Optional[ModelInstance]:
        with self.Session() as session:
            row = self._row(session, type_, key)
            return None if row is None else row.to_instance()

    def _update(self, instance: ModelInstance, key: str) -> Optional[ModelInstance]:
        try:
            with self.Session.begin() as session:
                row = self._row(session, instance.type, key)
                if row is None:
                    return None
                row.attributes = self._encode(instance.attributes)
                result = row.to_instance()
        except SQLAlchemyError as exc:
            restmodel.log.exception(exc)
            raise AdapterError(f"Failed to update {instance}: {exc}")
        return result

    def _delete(self, type_: str, key: str) -> bool:
        with self.Session.begin() as session:
            row = self._row(session, type_, key)
            if row is None:
                return False
            session.delete(row)
        return True

    def _find(self, type_: str) -> List[ModelInstance]:
        with self.Session() as session:
            stmt = select(ResourceRow).where(ResourceRow.type == type_).order_by(ResourceRow.pk)
            return [row.to_instance() for row in session.execute(stmt).scalars()]

    #
    # Adapter interface
    #
    async def create(self, instance: ModelInstance) -> ModelInstance:
        self.check_instance(instance)
        return await run_in_threadpool(self._create, instance)

    async def get(self, type_: str, id_: InstanceId) -> Optional[ModelInstance]:
        return await run_in_threadpool(self._get, self.check_type(type_), self.check_id(id_))

    async def update(self, instance: ModelInstance) -> Optional[ModelInstance]:
        self.check_instance(instance)
        return await run_in_threadpool(self._update, instance, self.check_id(instance.id))

    async def delete(self, type_: str, id_: InstanceId) -> bool:
        return await run_in_threadpool(self._delete, self.check_type(type_), self.check_id(id_))

    async def find(self, type_: str) -> List[ModelInstance]:
        return await run_in_threadpool(self._find, self.check_type(type_))

    async def find_by(self, type_: str, key: str, value: Any) -> List[ModelInstance]:
        # JSON path queries differ per dialect, filter the attributes in python
        return [instance for instance in await self.find(type_) if self.matches(instance, key, value)]
