import asyncio
import datetime
import threading
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from restmodel import AdapterError, MemoryAdapter, ModelInstance, SQLAlchemyAdapter
from restmodel.adapters import Adapter


def _sqlite_adapter() -> SQLAlchemyAdapter:
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False}, future=True)
    return SQLAlchemyAdapter(engine)


@pytest.fixture(params=["memory", "sqlalchemy"])
def storage(request: pytest.FixtureRequest) -> Adapter:
    if request.param == "memory":
        return MemoryAdapter()
    return _sqlite_adapter()


def run(coro):
    return asyncio.run(coro)


def test_create_assigns_id(storage: Adapter) -> None:
    created = run(storage.create(ModelInstance("test", {"name": "test"})))
    assert created.id is not None
    other = run(storage.create(ModelInstance("test", {"name": "other"})))
    assert other.id != created.id


def test_create_get_round_trip(storage: Adapter) -> None:
    created = run(storage.create(ModelInstance("test", {"name": "test", "tags": ["a"]})))
    fetched = run(storage.get("test", created.id))
    assert fetched.type == "test"
    assert fetched.id == created.id
    assert fetched.attributes == {"name": "test", "tags": ["a"]}
    # string and integer forms of an id address the same instance
    assert run(storage.get("test", str(created.id))) == fetched


def test_explicit_ids(storage: Adapter) -> None:
    run(storage.create(ModelInstance("test", {"name": "a"}, id="abc")))
    run(storage.create(ModelInstance("test", {"name": "b"}, id="42")))
    assert run(storage.get("test", "abc")).attributes == {"name": "a"}
    assert run(storage.get("test", "42")).id == "42"


def test_duplicate_id(storage: Adapter) -> None:
    run(storage.create(ModelInstance("test", {}, id="1")))
    with pytest.raises(AdapterError) as exc_info:
        run(storage.create(ModelInstance("test", {}, id="1")))
    assert exc_info.value.status_code == 409


def test_generated_id_skips_explicit_ids(storage: Adapter) -> None:
    run(storage.create(ModelInstance("test", {}, id=1)))
    created = run(storage.create(ModelInstance("test", {})))
    assert str(created.id) != "1"


def test_types_are_separate(storage: Adapter) -> None:
    run(storage.create(ModelInstance("test", {"name": "test"}, id="1")))
    assert run(storage.get("book", "1")) is None
    assert run(storage.find("book")) == []


def test_stored_instances_are_copies(storage: Adapter) -> None:
    instance = ModelInstance("test", {"tags": ["a"]})
    created = run(storage.create(instance))
    instance.attributes["tags"].append("b")
    created.attributes["tags"].append("c")
    assert run(storage.get("test", created.id)).attributes == {"tags": ["a"]}


def test_update(storage: Adapter) -> None:
    created = run(storage.create(ModelInstance("test", {"name": "test"})))
    created.attributes = {"name": "new", "another": "test"}
    updated = run(storage.update(created))
    assert updated.attributes == {"name": "new", "another": "test"}
    assert run(storage.get("test", created.id)).attributes == {"name": "new", "another": "test"}
    assert run(storage.update(ModelInstance("test", {}, id="missing"))) is None


def test_delete(storage: Adapter) -> None:
    created = run(storage.create(ModelInstance("test", {"name": "test"})))
    assert run(storage.delete("test", created.id)) is True
    assert run(storage.get("test", created.id)) is None
    assert run(storage.delete("test", created.id)) is False


def test_find_and_find_by(storage: Adapter) -> None:
    run(storage.create(ModelInstance("book", {"title": "a", "author_id": 1})))
    run(storage.create(ModelInstance("book", {"title": "b", "author_id": "1"})))
    run(storage.create(ModelInstance("book", {"title": "c", "author_id": 2})))
    run(storage.create(ModelInstance("book", {"title": "d"})))
    assert len(run(storage.find("book"))) == 4
    titles = sorted(book.attributes["title"] for book in run(storage.find_by("book", "author_id", 1)))
    assert titles == ["a", "b"]
    assert run(storage.find_by("book", "author_id", None)) == []
    assert run(storage.find_by("book", "author_id", 3)) == []


def test_dates_are_encoded(storage: Adapter) -> None:
    created = run(storage.create(ModelInstance("test", {"created": datetime.date(2020, 1, 1)})))
    assert run(storage.get("test", created.id)).to_resource()["attributes"] == {"created": "2020-01-01"}


@pytest.mark.parametrize("bad_id", [None, "", True, 1.5, ["1"]])
def test_malformed_id(storage: Adapter, bad_id: object) -> None:
    with pytest.raises(AdapterError):
        run(storage.get("test", bad_id))
    with pytest.raises(AdapterError):
        run(storage.delete("test", bad_id))


@pytest.mark.parametrize("bad_type", [None, "", 1])
def test_malformed_type(storage: Adapter, bad_type: object) -> None:
    with pytest.raises(AdapterError):
        run(storage.get(bad_type, "1"))
    with pytest.raises(AdapterError):
        run(storage.create(ModelInstance(bad_type, {})))


def test_invalid_instance(storage: Adapter) -> None:
    with pytest.raises(AdapterError):
        run(storage.create({"type": "test"}))


def test_concurrent_creates_get_distinct_ids() -> None:
    adapter = MemoryAdapter()

    async def create_many():
        return await asyncio.gather(*(adapter.create(ModelInstance("test", {"n": n})) for n in range(50)))

    created = run(create_many())
    assert len({instance.id for instance in created}) == 50


def test_integer_ids_round_trip_through_sqlalchemy() -> None:
    adapter = _sqlite_adapter()
    created = run(adapter.create(ModelInstance("test", {})))
    assert isinstance(created.id, int)
    assert run(adapter.get("test", created.id)).id == created.id
    explicit = run(adapter.create(ModelInstance("test", {}, id="007")))
    assert run(adapter.get("test", explicit.id)).id == "007"


def test_sqlalchemy_adapter_from_url(tmp_path: Path) -> None:
    adapter = SQLAlchemyAdapter(f"sqlite:///{tmp_path / 'restmodel.db'}")
    assert run(adapter.find("test")) == []


def test_sqlalchemy_sessions_run_off_the_event_loop(monkeypatch: pytest.MonkeyPatch) -> None:
    adapter = _sqlite_adapter()
    threads = []
    find = adapter._find

    def recording_find(type_: str):
        threads.append(threading.get_ident())
        return find(type_)

    monkeypatch.setattr(adapter, "_find", recording_find)

    async def find_twice():
        loop_thread = threading.get_ident()
        await adapter.find("test")
        await adapter.find_by("book", "author_id", 1)
        return loop_thread

    loop_thread = run(find_twice())
    assert len(threads) == 2
    assert loop_thread not in threads


def test_memory_reads_do_not_add_stores() -> None:
    adapter = MemoryAdapter()
    run(adapter.get("test", "1"))
    run(adapter.find("book"))
    run(adapter.find_by("book", "author_id", 1))
    run(adapter.delete("author", "1"))
    assert run(adapter.update(ModelInstance("note", {}, id="1"))) is None
    assert adapter._stores == {}
    run(adapter.create(ModelInstance("test", {})))
    assert list(adapter._stores) == ["test"]
