"""Tests for datastore/domain/stores/base.py."""

import asyncio
import types
from uuid import UUID

import pytest

from datastore.domain.stores import (
    AsyncGuidPersistentStore,
    AsyncPersistentStore,
    GuidPersistentStore,
    PersistentStore,
)

_SYNC_METHODS = {
    "find_as_no_tracking": lambda self: None,
    "find": lambda self, criteria=None: None,
    "find_by_id": lambda self, id: "found",
    "get_by_id": lambda self, id: "found",
    "find_by_ids": lambda self, *ids: [],
    "single": lambda self, predicate: None,
    "exists": lambda self, *ids: False,
    "query": lambda self, query: [],
    "query_as_no_tracking": lambda self, query: [],
    "pager_query": lambda self, query: None,
    "pager_query_as_no_tracking": lambda self, query: None,
    "add": lambda self, po: None,
    "update": lambda self, po: None,
    "remove": lambda self, target: None,
}


def _subclass(name, base, methods):
    return types.new_class(name, (base,), exec_body=lambda ns: ns.update(methods))


def test_persistent_store_cannot_be_instantiated_directly():
    with pytest.raises(TypeError):
        PersistentStore()  # type: ignore[abstract]


def test_async_persistent_store_cannot_be_instantiated_directly():
    with pytest.raises(TypeError):
        AsyncPersistentStore()  # type: ignore[abstract]


def test_partial_subclass_is_still_abstract():
    partial = {k: v for k, v in _SYNC_METHODS.items() if k != "pager_query"}
    cls = _subclass("_Partial", PersistentStore, partial)
    with pytest.raises(TypeError):
        cls()


def test_full_subclass_instantiates():
    cls = _subclass("_Full", PersistentStore, _SYNC_METHODS)
    assert cls().find_by_id(1) == "found"


def test_full_async_subclass_instantiates():
    async def find_by_id(self, id):
        return "found"

    methods = dict(_SYNC_METHODS, find_by_id=find_by_id)
    store = _subclass("_AsyncFull", AsyncPersistentStore, methods)()
    assert asyncio.run(store.find_by_id(1)) == "found"


def test_sync_and_async_contracts_share_operation_names():
    assert PersistentStore.__abstractmethods__ == AsyncPersistentStore.__abstractmethods__


def test_guid_store_fixes_key_type_to_uuid():
    assert GuidPersistentStore.__origin__ is PersistentStore
    assert GuidPersistentStore.__args__[1] is UUID
    assert AsyncGuidPersistentStore.__origin__ is AsyncPersistentStore


def test_guid_store_is_subclassable_with_an_object_type():
    class Order:
        pass

    cls = _subclass("_OrderStore", GuidPersistentStore[Order], _SYNC_METHODS)
    assert isinstance(cls(), PersistentStore)
