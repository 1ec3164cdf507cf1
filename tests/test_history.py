"""Tests for the proposal history store."""

from datetime import datetime, timedelta, timezone

import pytest

from sourcing_assistant.proposal.models import PriorityLevel, Proposal
from sourcing_assistant.storage.history import HistoryEntry, HistoryStore

T1 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
T2 = T1 + timedelta(hours=1)


def _entry(entry_id: str, created_at: datetime, name: str = "Widget") -> HistoryEntry:
    proposal = Proposal.model_validate({
        "productName": name,
        "ddpPriceTiers": [{"quantity": 1000, "pricePerUnit": 1.5}],
    })
    return HistoryEntry(id=entry_id, product_name=name, proposal=proposal, created_at=created_at)


@pytest.fixture
def store(state_store):
    history = HistoryStore(state_store)
    history.load()
    return history


def test_newest_first(store):
    store.append(_entry("t1", T1))
    store.append(_entry("t2", T2))

    assert [entry.id for entry in store.entries] == ["t2", "t1"]


def test_out_of_order_append_is_sorted(store):
    store.append(_entry("t2", T2))
    store.append(_entry("t1", T1))

    assert [entry.id for entry in store.entries] == ["t2", "t1"]


def test_equal_timestamps_keep_latest_insert_first(store):
    store.append(_entry("first", T1))
    store.append(_entry("second", T1))

    assert [entry.id for entry in store.entries] == ["second", "first"]


def test_delete_active_entry_clears_selection(store):
    store.append(_entry("t1", T1))
    store.append(_entry("t2", T2))
    store.select("t2")

    was_active = store.delete("t2")

    assert was_active is True
    assert store.active_id is None
    assert [entry.id for entry in store.entries] == ["t1"]


def test_delete_inactive_entry_keeps_selection(store):
    store.append(_entry("t1", T1))
    store.append(_entry("t2", T2))
    store.select("t1")

    assert store.delete("t2") is False
    assert store.active_id == "t1"


def test_select_returns_proposal(store):
    store.append(_entry("t1", T1, name="Lamp"))

    assert store.select("t1").product_name == "Lamp"
    assert store.select("missing") is None
    assert store.active_id == "t1"


def test_clear(store):
    store.append(_entry("t1", T1))
    store.select("t1")

    store.clear()

    assert store.entries == []
    assert store.active_id is None


def test_history_persists(state_store):
    first = HistoryStore(state_store)
    first.load()
    first.append(_entry("t1", T1))
    first.append(HistoryEntry.for_proposal(_entry("x", T2).proposal, PriorityLevel.HIGH))

    second = HistoryStore(state_store)
    second.load()

    assert len(second.entries) == 2
    assert second.entries[0].priority_level == PriorityLevel.HIGH
    assert second.entries[0].id.startswith("item-")
    assert second.entries[1].created_at == T1
    assert second.active_id is None

    raw = state_store.read(second.key)
    assert raw[1]["priority"] == "Medium"
    assert raw[1]["productName"] == "Widget"


def test_naive_timestamps_are_utc():
    entry = HistoryEntry.model_validate({
        "id": "old",
        "proposal": {"productName": "Widget"},
        "createdAt": "2024-05-01T12:00:00",
    })

    assert entry.created_at == T1


def test_corrupt_payload_loads_empty(state_store):
    store = HistoryStore(state_store)
    state_store.write(store.key, {"not": "a list"})

    store.load()

    assert store.entries == []
    assert state_store.read(store.key) is None


def test_undecodable_bytes_load_empty(state_store):
    store = HistoryStore(state_store)
    state_store._get_path(store.key).write_bytes(b'[{"id": "\xff\xfe"}]')

    store.load()

    assert store.entries == []
    assert state_store.read(store.key) is None
