"""Tests for history and preference stores."""

from datetime import timedelta

import pytest

from conftest import BASE_TIME, make_event
from nextnav.exceptions import InvalidInputError
from nextnav.models import NavigationEvent, UserCustomMenuItem
from nextnav.store import SQLiteHistoryStore


class TestInMemoryHistoryStore:
    """Tests for InMemoryHistoryStore."""

    @pytest.mark.asyncio
    async def test_add_and_get_user_history(self, history_store):
        """Test adding events and reading per-user history."""
        await history_store.add_event(make_event("alice", "Home"))
        await history_store.add_event(make_event("alice", "Dashboard", "Home", minutes=1))
        await history_store.add_event(make_event("bob", "Settings"))

        alice = await history_store.get_user_history("alice")
        assert [e.current_page_or_feature for e in alice] == ["Home", "Dashboard"]
        assert len(await history_store.get_all_history()) == 3

    @pytest.mark.asyncio
    async def test_unknown_user_is_empty(self, history_store):
        """Test unknown user has no history."""
        assert await history_store.get_user_history("nobody") == []

    @pytest.mark.asyncio
    async def test_empty_user_rejected(self, history_store):
        """Test empty user id rejected."""
        with pytest.raises(InvalidInputError) as exc_info:
            await history_store.add_event(make_event("", "Home"))
        assert exc_info.value.field == "user_id"
        assert await history_store.get_all_history() == []

    @pytest.mark.asyncio
    async def test_since_filter_inclusive(self, history_store):
        """Test since filter is inclusive."""
        for minutes in (0, 5, 10):
            await history_store.add_event(make_event("alice", "Home", minutes=minutes))

        since = BASE_TIME + timedelta(minutes=5)

        assert len(await history_store.get_user_history("alice", since=since)) == 2
        assert len(await history_store.get_all_history(since=since)) == 2

    @pytest.mark.asyncio
    async def test_returned_list_is_a_copy(self, history_store):
        """Test returned history is a copy."""
        await history_store.add_event(make_event("alice", "Home"))
        history = await history_store.get_user_history("alice")
        history.clear()
        assert len(await history_store.get_user_history("alice")) == 1


class TestInMemoryPreferencesStore:
    """Tests for InMemoryPreferencesStore."""

    @pytest.mark.asyncio
    async def test_upsert_keeps_one_item(self, preferences_store):
        """Test upsert keeps one item per name."""
        await preferences_store.add_or_update(UserCustomMenuItem("alice", "Reports", 3))
        await preferences_store.add_or_update(UserCustomMenuItem("alice", "Reports", 1))

        items = await preferences_store.get_all("alice")
        assert len(items) == 1
        assert items[0].order == 1

    @pytest.mark.asyncio
    async def test_sorted_by_order(self, preferences_store):
        """Test items sorted by order."""
        await preferences_store.add_or_update(UserCustomMenuItem("alice", "Settings", 2))
        await preferences_store.add_or_update(UserCustomMenuItem("alice", "Reports", 0))
        await preferences_store.add_or_update(UserCustomMenuItem("alice", "Help", 1))

        items = await preferences_store.get_all("alice")
        assert [i.item_name for i in items] == ["Reports", "Help", "Settings"]

    @pytest.mark.asyncio
    async def test_remove(self, preferences_store):
        """Test removing items."""
        await preferences_store.add_or_update(UserCustomMenuItem("alice", "Reports", 0))
        await preferences_store.remove("alice", "Reports")
        await preferences_store.remove("alice", "Missing")
        await preferences_store.remove("nobody", "Reports")

        assert await preferences_store.get_all("alice") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id,item_name", [("", "Reports"), ("alice", "")])
    async def test_empty_keys_rejected(self, preferences_store, user_id, item_name):
        """Test empty keys rejected."""
        with pytest.raises(InvalidInputError):
            await preferences_store.add_or_update(UserCustomMenuItem(user_id, item_name))


class TestSQLiteHistoryStore:
    """Tests for SQLiteHistoryStore."""

    @pytest.fixture
    def store(self, tmp_path):
        with SQLiteHistoryStore(tmp_path / "db" / "history.db") as store:
            yield store

    @pytest.mark.asyncio
    async def test_add_and_query(self, store):
        """Test adding and querying events."""
        await store.add_event(make_event("alice", "Home"))
        await store.add_event(make_event("alice", "Dashboard", "Home", minutes=1))
        await store.add_event(make_event("bob", "Settings"))

        alice = await store.get_user_history("alice")
        assert sorted(e.current_page_or_feature for e in alice) == ["Dashboard", "Home"]
        assert len(await store.get_all_history()) == 3

    @pytest.mark.asyncio
    async def test_fields_preserved(self, store):
        """Test every field survives storage."""
        event = NavigationEvent(
            user_id="alice",
            current_page_or_feature="Dashboard",
            previous_page_or_feature="Home",
            timestamp=BASE_TIME,
            session_id="s1",
            context_data={"PreviousPage": "Home"},
        )
        await store.add_event(event)

        [restored] = await store.get_user_history("alice")
        assert restored == event

    @pytest.mark.asyncio
    async def test_empty_user_rejected(self, store):
        """Test empty user id rejected."""
        with pytest.raises(InvalidInputError):
            await store.add_event(make_event("", "Home"))

    @pytest.mark.asyncio
    async def test_since_filter(self, store):
        """Test since filter."""
        for minutes in (0, 5, 10):
            await store.add_event(make_event("alice", "Home", minutes=minutes))

        since = BASE_TIME + timedelta(minutes=5)
        assert len(await store.get_all_history(since=since)) == 2

    @pytest.mark.asyncio
    async def test_persists_across_reopen(self, tmp_path):
        """Test events persist across reopen."""
        path = tmp_path / "history.db"
        with SQLiteHistoryStore(path) as store:
            await store.add_event(make_event("alice", "Home"))

        with SQLiteHistoryStore(path) as reopened:
            history = await reopened.get_all_history()
            assert [e.user_id for e in history] == ["alice"]

    @pytest.mark.asyncio
    async def test_stats(self, store):
        """Test store statistics."""
        await store.add_event(make_event("alice", "Home"))
        await store.add_event(make_event("bob", "Home"))

        stats = store.get_stats()
        assert stats["n_events"] == 2
        assert stats["n_users"] == 2

