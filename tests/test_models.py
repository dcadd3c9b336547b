"""Tests for src.data.models — ChatKey and Reminder."""

from unittest.mock import MagicMock

import pytest

from src.data.models import ChatKey, Notification, Reminder


def _make_update(chat_id=100, thread_id=None, is_topic=False):
    update = MagicMock()
    update.effective_chat.id = chat_id
    update.effective_message.message_thread_id = thread_id
    update.effective_message.is_topic_message = is_topic
    return update


class TestChatKeyNormalization:
    def test_thread_zero_equals_no_thread(self):
        assert ChatKey(100, 0) == ChatKey(100)
        assert hash(ChatKey(100, 0)) == hash(ChatKey(100))

    def test_numeric_string_chat_id_becomes_int(self):
        assert ChatKey("100") == ChatKey(100)
        assert ChatKey("-1001234").chat_id == -1001234

    def test_username_chat_id_kept_as_string(self):
        assert ChatKey("@team_channel").chat_id == "@team_channel"

    def test_different_threads_differ(self):
        assert ChatKey(100, 5) != ChatKey(100)
        assert ChatKey(100, 5) != ChatKey(100, 6)

    def test_thread_does_not_collide_with_chat_id(self):
        # "1" + "23" and "12" + "3" must stay distinct
        assert ChatKey(1, 23) != ChatKey(12, 3)
        assert ChatKey(1, 23).to_str() != ChatKey(12, 3).to_str()

    def test_rejects_separator_in_chat_id(self):
        with pytest.raises(ValueError):
            ChatKey("100/5")

    def test_rejects_empty_chat_id(self):
        with pytest.raises(ValueError):
            ChatKey("  ")


class TestChatKeyStringForm:
    def test_without_thread(self):
        assert ChatKey(-100).to_str() == "-100"
        assert str(ChatKey(-100)) == "-100"

    def test_with_thread(self):
        assert ChatKey(-100, 7).to_str() == "-100/7"

    @pytest.mark.parametrize("key", [
        ChatKey(100),
        ChatKey(-1001234, 42),
        ChatKey("@team_channel"),
        ChatKey("@team_channel", 3),
    ])
    def test_from_str_inverts_to_str(self, key):
        assert ChatKey.from_str(key.to_str()) == key

    def test_from_str_invalid_thread(self):
        with pytest.raises(ValueError):
            ChatKey.from_str("100/abc")


class TestChatKeyOrdering:
    def test_sorted_is_total_over_mixed_ids(self):
        keys = [ChatKey("@b"), ChatKey(2, 1), ChatKey(2), ChatKey(10)]
        assert sorted(keys) == [ChatKey(10), ChatKey(2), ChatKey(2, 1), ChatKey("@b")]

    def test_comparison_operators(self):
        assert ChatKey(1) < ChatKey(1, 1)
        assert ChatKey(1, 1) > ChatKey(1)
        assert ChatKey(1) <= ChatKey(1, 0)


class TestChatKeyFromUpdate:
    def test_plain_group_message(self):
        assert ChatKey.from_update(_make_update(chat_id=-100)) == ChatKey(-100)

    def test_forum_topic_message(self):
        update = _make_update(chat_id=-100, thread_id=9, is_topic=True)
        assert ChatKey.from_update(update) == ChatKey(-100, 9)

    def test_reply_thread_outside_forum_ignored(self):
        update = _make_update(chat_id=-100, thread_id=9, is_topic=False)
        assert ChatKey.from_update(update) == ChatKey(-100)

    def test_no_message(self):
        update = MagicMock()
        update.effective_chat.id = 5
        update.effective_message = None
        assert ChatKey.from_update(update) == ChatKey(5)


class TestReminder:
    def test_to_dict(self):
        assert Reminder("alice", "every weekday").to_dict() == {
            "userTag": "alice",
            "schedule": "every weekday",
        }

    def test_from_dict(self):
        reminder = Reminder.from_dict({"userTag": "bob", "schedule": "fri"})
        assert reminder == Reminder(user_tag="bob", schedule="fri")


def test_notification_defaults_to_no_thread():
    note = Notification(chat_id=100, user_tag="alice")
    assert note.thread_id is None
