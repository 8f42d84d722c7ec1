"""Tests for message filtering."""

from hookpost.core.search import filter_messages
from hookpost.models import Embed, EmbedPayload, Message, TextPayload


def _text(mid, content):
    return Message(mid, TextPayload(content), "t")


def _embed(mid, title=None, description=None):
    return Message(mid, EmbedPayload(Embed(title=title, description=description, color=1)), "t")


class TestFilterMessages:
    def test_empty_query_returns_everything_in_order(self):
        messages = [_text("1", "b"), _text("2", "a"), _embed("3", title="c")]
        assert filter_messages(messages, "") == messages

    def test_case_insensitive(self):
        messages = [_text("1", "Hello"), _text("2", "world")]
        assert filter_messages(messages, "WORLD") == [messages[1]]

    def test_matches_embed_title_and_description(self):
        messages = [
            _embed("1", title="Deploy finished"),
            _text("2", "nothing here"),
            _embed("3", description="the deploy failed"),
        ]
        assert [m.remote_id for m in filter_messages(messages, "deploy")] == ["1", "3"]

    def test_embed_without_fields_never_matches(self):
        assert filter_messages([_embed("1")], "x") == []

    def test_substring(self):
        messages = [_text("1", "release v1.2.3"), _text("2", "v2")]
        assert filter_messages(messages, "1.2") == [messages[0]]

    def test_no_match(self):
        assert filter_messages([_text("1", "abc")], "zzz") == []
