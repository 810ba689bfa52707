from __future__ import annotations

from conftest import FIXED_TS

from glossary_bot.glossary_store import GlossaryStore
from glossary_bot.models import AddResult
from glossary_bot.persistence import InMemoryPersistence


class BrokenPersistence:
    def read_entry(self, normalized_key):
        raise RuntimeError("db down")

    def replace_entry(self, normalized_key, entry):
        raise RuntimeError("db down")

    def delete_entry(self, normalized_key):
        raise RuntimeError("db down")


class ReadOnlyPersistence(InMemoryPersistence):
    def replace_entry(self, normalized_key, entry):
        raise RuntimeError("read only")

    def delete_entry(self, normalized_key):
        raise RuntimeError("read only")


def test_add_is_idempotent_across_case_and_whitespace(store, persistence):
    assert store.add_value("API", "REST", "alice@example.com") == AddResult.ADDED
    assert store.add_value("api", " rest ", "bob@example.com") == AddResult.DUPLICATE

    values = store.get_values("API")
    assert [v.value for v in values] == ["REST"]
    assert values[0].created_by == "alice@example.com"
    assert values[0].created_at == FIXED_TS


def test_lookup_ignores_key_case_and_whitespace(store):
    store.add_value("API", "REST", "u")
    store.add_value("API", "Application Programming Interface", "u")

    expected = ["REST", "Application Programming Interface"]
    assert store.get_display_values("API") == expected
    assert store.get_display_values("api ") == expected
    assert store.get_display_values(" Api") == expected


def test_entries_are_stored_under_normalized_key_with_trimmed_value(store, persistence):
    store.add_value("  Api ", "  REST  ", "u")
    assert persistence.snapshot() == {
        "api": {"values": [{"value": "REST", "createdAt": FIXED_TS, "createdBy": "u"}]}
    }


def test_add_rejects_empty_key_or_value(store, persistence):
    assert store.add_value("   ", "x", "u") == AddResult.ERROR
    assert store.add_value("k", "  ", "u") == AddResult.ERROR
    assert persistence.snapshot() == {}


def test_get_values_absent_for_unknown_or_empty_record(store, persistence):
    assert store.get_values("missing") is None
    assert store.get_values("") is None

    persistence.replace_entry("empty", {"values": []})
    persistence.replace_entry("broken", {"values": "not a list"})
    assert store.get_values("empty") is None
    assert store.get_values("broken") is None


def test_display_values_skip_records_without_text(store, persistence):
    persistence.replace_entry("k", {"values": [{"value": ""}, {"value": "one"}]})
    assert store.get_display_values("k") == ["one"]


def test_remove_value_keeps_other_values(store):
    store.add_value("K", "one", "u")
    store.add_value("K", "two", "u")

    assert store.remove_value("k", " ONE ") is True
    assert store.get_display_values("K") == ["two"]
    assert store.remove_value("K", "one") is False


def test_removing_last_value_deletes_the_key(store, persistence):
    store.add_value("K", "only", "u")

    assert store.remove_value("K", "only") is True
    assert store.get_values("K") is None
    assert "k" not in persistence.snapshot()

    # a fresh add starts a new entry
    assert store.add_value("K", "only", "u") == AddResult.ADDED
    assert store.get_display_values("K") == ["only"]


def test_remove_key(store):
    store.add_value("K", "a", "u")
    store.add_value("K", "b", "u")

    assert store.remove_key(" k ") is True
    assert store.get_values("K") is None
    assert store.remove_key("K") is False
    assert store.remove_key("") is False


def test_remove_value_ignores_records_without_text(store, persistence):
    persistence.replace_entry("k", {"values": [{"value": ""}, {"value": "x"}]})
    assert store.remove_value("k", "x") is True
    assert persistence.snapshot()["k"]["values"] == [
        {"value": "", "createdAt": "", "createdBy": "unknown"}
    ]


def test_read_faults_degrade_to_absent():
    store = GlossaryStore(BrokenPersistence())
    assert store.get_values("k") is None
    assert store.get_display_values("k") is None
    assert store.add_value("k", "v", "u") == AddResult.ERROR
    assert store.remove_key("k") is False
    assert store.remove_value("k", "v") is False


def test_write_faults_are_reported_as_results():
    persistence = ReadOnlyPersistence()
    InMemoryPersistence.replace_entry(persistence, "k", {"values": [{"value": "v"}]})
    store = GlossaryStore(persistence)

    assert store.add_value("k", "other", "u") == AddResult.ERROR
    assert store.remove_key("k") is False
    assert store.remove_value("k", "v") is False
    assert store.get_display_values("k") == ["v"]


class InterleavingPersistence(InMemoryPersistence):
    """
    Runs `on_first_read` right after the first read returns its snapshot,
    which is exactly where a second message could slip in.
    """

    def __init__(self):
        super().__init__()
        self.on_first_read = None

    def read_entry(self, normalized_key):
        snapshot = super().read_entry(normalized_key)
        hook, self.on_first_read = self.on_first_read, None
        if hook is not None:
            hook()
        return snapshot


def test_concurrent_adds_on_same_key_can_lose_an_update():
    # Known limitation: read-modify-write without locking. The second writer's
    # value is overwritten by the first writer's stale full-list write.
    persistence = InterleavingPersistence()
    store = GlossaryStore(persistence, clock=lambda: FIXED_TS)
    store.add_value("K", "base", "u")

    persistence.on_first_read = lambda: store.add_value("K", "from-b", "b")
    assert store.add_value("K", "from-a", "a") == AddResult.ADDED

    assert store.get_display_values("K") == ["base", "from-a"]
