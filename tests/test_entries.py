"""Tests for the entry model and its transforms."""

from datetime import date, datetime, timezone

import pytest

from daybook.core import entries
from daybook.core.entries import JournalEntry, synthesize_entry
from daybook.core.moods import MOOD_EMOJIS, allowed_moods, prune_moods, reindex_after_delete
from daybook.errors import InvalidInput


@pytest.fixture
def entry():
    return JournalEntry(
        id="e1",
        owner_id="u",
        entry_date=date(2025, 1, 15),
        statements=("a", "b", "c"),
        moods={0: "😊", 2: "🌟"},
    )


class TestTransforms:
    def test_synthesize(self):
        now = datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc)
        created = synthesize_entry("u", date(2025, 1, 15), "rain", "🙏", 3, now=now)
        assert created.statements == ("rain",)
        assert created.moods == {0: "🙏"}
        assert created.id == f"temp-{int(now.timestamp() * 1000)}-3"
        assert created.created_at == now

    def test_synthesize_without_mood(self):
        created = synthesize_entry("u", date(2025, 1, 15), "rain", None, 1)
        assert created.moods == {}

    def test_append_does_not_mutate_original(self, entry):
        updated = entries.append_statement(entry, "d", "💪")
        assert updated.statements == ("a", "b", "c", "d")
        assert updated.moods == {0: "😊", 2: "🌟", 3: "💪"}
        assert entry.statements == ("a", "b", "c")

    def test_edit_sets_and_clears_mood(self, entry):
        assert entries.edit_statement(entry, 1, "B", "🧘").moods[1] == "🧘"
        cleared = entries.edit_statement(entry, 0, "A", None)
        assert cleared.statements[0] == "A"
        assert 0 not in cleared.moods

    def test_edit_out_of_range_is_noop(self, entry):
        assert entries.edit_statement(entry, 5, "x", None) is entry

    def test_delete_reindexes_moods(self, entry):
        updated = entries.delete_statement(entry, 0)
        assert updated.statements == ("b", "c")
        assert updated.moods == {1: "🌟"}

    def test_delete_last_returns_none(self):
        single = JournalEntry(id="e", owner_id="u", entry_date=date(2025, 1, 1), statements=("x",))
        assert entries.delete_statement(single, 0) is None

    def test_set_mood_leaves_statements(self, entry):
        updated = entries.set_mood(entry, 1, "🙏")
        assert updated.statements == entry.statements
        assert updated.moods == {0: "😊", 1: "🙏", 2: "🌟"}
        assert entries.set_mood(entry, 0, None).moods == {2: "🌟"}


class TestSerialization:
    def test_to_dict(self, entry):
        data = entry.to_dict()
        assert data["user_id"] == "u"
        assert data["entry_date"] == "2025-01-15"
        assert data["statements"] == ["a", "b", "c"]
        assert data["moods"] == {"0": "😊", "2": "🌟"}

    def test_from_dict_drops_dangling_moods(self):
        parsed = JournalEntry.from_dict(
            {
                "id": "e1",
                "user_id": "u",
                "entry_date": "2025-01-15",
                "statements": ["a"],
                "moods": {"0": "😊", "4": "🌟", "1": None},
                "created_at": "2025-01-15T08:00:00+00:00",
                "updated_at": "2025-01-15T09:00:00+00:00",
            }
        )
        assert parsed.moods == {0: "😊"}
        assert parsed.entry_date == date(2025, 1, 15)
        assert parsed.updated_at.hour == 9

    def test_from_dict_tolerates_missing_fields(self):
        parsed = JournalEntry.from_dict({"id": 1, "user_id": "u", "entry_date": "2025-01-15"})
        assert parsed.statements == ()
        assert parsed.moods == {}


class TestValidation:
    def test_statement_is_stripped(self):
        assert entries.validate_statement("  hi ") == "hi"

    @pytest.mark.parametrize("bad", ["", "  ", None])
    def test_empty_statement(self, bad):
        with pytest.raises(InvalidInput):
            entries.validate_statement(bad)

    @pytest.mark.parametrize("bad", [-1, True, "1", 1.0])
    def test_bad_index(self, bad):
        with pytest.raises(InvalidInput):
            entries.validate_index(bad)

    def test_mood(self):
        assert entries.validate_mood(None, MOOD_EMOJIS) is None
        assert entries.validate_mood("😊", MOOD_EMOJIS) == "😊"
        with pytest.raises(InvalidInput):
            entries.validate_mood("🤖", MOOD_EMOJIS)


class TestMoods:
    def test_allowed_moods_appends_extras_once(self):
        assert allowed_moods(["🤖", "😊", "", "🤖"]) == (*MOOD_EMOJIS, "🤖")

    def test_reindex_after_delete(self):
        assert reindex_after_delete({0: "a", 1: "b", 3: "d"}, 1) == {0: "a", 2: "d"}

    def test_prune(self):
        assert prune_moods({0: "a", 2: "c", -1: "x"}, 2) == {0: "a"}
