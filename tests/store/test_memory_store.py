"""Tests for the in-memory mail store."""

import pytest

from tagsieve.errors import StoreReadError
from tagsieve.store.memory import MemoryMessage, MemoryStore


@pytest.fixture
def populated():
    return MemoryStore([
        MemoryMessage("a@x", "t1", {"Subject": "one"}, ["new", "inbox"], ["/m/a"]),
        MemoryMessage("b@x", "t1", {"Subject": "two"}, ["unread"], ["/m/b"]),
        MemoryMessage("c@x", "t2", {"Subject": "three"}, ["new"], ["/m/c1", "/m/c2"]),
    ])


class TestQueries:
    """Tests for message and thread queries."""

    def test_all_messages(self, populated):
        assert [m.msg_id for m in populated.search_messages("*")] == ["a@x", "b@x", "c@x"]

    def test_tag_query(self, populated):
        assert [m.msg_id for m in populated.search_messages("tag:new")] == ["a@x", "c@x"]

    def test_combined_terms(self, populated):
        result = populated.search_messages("tag:new thread:t1")
        assert [m.msg_id for m in result] == ["a@x"]

    def test_id_query(self, populated):
        assert [m.msg_id for m in populated.search_messages("id:b@x")] == ["b@x"]

    def test_unsupported_query(self, populated):
        with pytest.raises(StoreReadError, match="Unsupported query term"):
            populated.search_messages("from:alice")

    def test_empty_query(self, populated):
        with pytest.raises(StoreReadError, match="Empty query"):
            populated.search_messages("   ")

    def test_thread_tags_are_union(self, populated):
        threads = list(populated.search_threads("thread:t1"))
        assert len(threads) == 1
        assert list(threads[0].tags()) == ["inbox", "new", "unread"]

    def test_unknown_thread(self, populated):
        assert list(populated.search_threads("thread:nope")) == []

    def test_tagging_while_iterating(self, populated):
        for msg in populated.search_messages("tag:new"):
            msg.remove_tag("new")
        assert list(populated.search_messages("tag:new")) == []


class TestMessages:
    """Tests for MemoryMessage."""

    def test_header_case_insensitive(self):
        msg = MemoryMessage("a@x", "t", {"X-Spam-Flag": "YES"})
        assert msg.header("x-spam-flag") == "YES"
        assert msg.header("Subject") is None

    def test_filename_without_files(self):
        with pytest.raises(StoreReadError, match="no backing file"):
            MemoryMessage("a@x", "t").filename()

    def test_tag_changes(self):
        msg = MemoryMessage("a@x", "t", tag_list=["a"])
        msg.add_tag("a")
        msg.add_tag("b")
        msg.remove_tag("missing")
        assert msg.tag_list == ["a", "b"]
        msg.remove_all_tags()
        assert list(msg.tags()) == []


class TestRemoval:
    """Tests for removing message files."""

    def test_remove_one_of_several_files(self, populated):
        populated.remove_message("/m/c1")
        msg = populated.get("c@x")
        assert msg is not None
        assert msg.files == ["/m/c2"]

    def test_remove_last_file_drops_message(self, populated):
        populated.remove_message("/m/a")
        assert populated.get("a@x") is None
        assert len(populated.messages) == 2

    def test_remove_unknown_path(self, populated):
        with pytest.raises(StoreReadError):
            populated.remove_message("/m/zzz")
