"""
Tests for the in-memory chat store.
"""

import pytest

from core.chats import ChatStore, DEFAULT_TITLE, title_from_text
from errors import ChatNotFoundError
from test_utils import FakeClock


@pytest.fixture
def store():
    return ChatStore(clock=FakeClock())


class TestChatStore:

    def test_create_chat_defaults(self, store):
        chat = store.create_chat()

        assert chat.id.startswith("chat-1700000000000-")
        assert chat.title == DEFAULT_TITLE
        assert chat.messages == []
        assert store.list_chats() == [chat]
        assert chat.to_payload()["createdAt"].endswith("Z")

    def test_add_message_stamps_id_and_timestamp(self, store):
        chat = store.create_chat()
        message = store.add_message(chat.id, {"type": "text", "content": "hi", "id": "client-id"})

        assert message.id != "client-id"
        assert message.timestamp
        assert message.content == "hi"

    def test_extra_message_fields_are_kept(self, store):
        chat = store.create_chat()
        message = store.add_message(chat.id, {"type": "url", "original": "long text", "result": "short"})

        assert message.model_dump()["original"] == "long text"

    def test_first_message_retitles_default_chat(self, store):
        chat = store.create_chat()
        store.add_message(chat.id, {"content": "Hello world from the test suite"})

        assert chat.title == "Hello world from the test suit..."

    def test_title_falls_back_to_result(self, store):
        chat = store.create_chat()
        store.add_message(chat.id, {"type": "text", "result": "Short result"})

        assert chat.title == "Short result"

    def test_later_messages_keep_title(self, store):
        chat = store.create_chat()
        store.add_message(chat.id, {"content": "first"})
        store.add_message(chat.id, {"content": "second"})

        assert chat.title == "first"

    def test_custom_title_not_overwritten(self, store):
        chat = store.create_chat()
        store.update_title(chat.id, "Renamed")
        store.add_message(chat.id, {"content": "first"})

        assert chat.title == "Renamed"

    def test_messages_trimmed_to_last_fifty(self, store):
        chat = store.create_chat()
        for i in range(55):
            store.add_message(chat.id, {"content": f"message {i}"})

        assert len(chat.messages) == 50
        assert chat.messages[0].content == "message 5"
        assert chat.messages[-1].content == "message 54"

    def test_delete_chat(self, store):
        chat = store.create_chat()
        store.delete_chat(chat.id)

        assert chat.id not in store
        assert len(store) == 0

    @pytest.mark.parametrize("operation", [
        lambda s: s.get("missing"),
        lambda s: s.add_message("missing", {"content": "x"}),
        lambda s: s.update_title("missing", "x"),
        lambda s: s.delete_chat("missing"),
    ])
    def test_missing_chat_raises(self, store, operation):
        with pytest.raises(ChatNotFoundError):
            operation(store)

    def test_title_from_text(self):
        assert title_from_text("a" * 30) == "a" * 30
        assert title_from_text("a" * 31) == "a" * 30 + "..."
