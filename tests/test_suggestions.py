# Copyright 2024 MeshChat contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for command and mention suggestions."""

import pytest

from meshchat.core.catalog import COMMAND_CATALOG, format_command_list, similar_commands
from meshchat.core.memory import InMemoryChatState, LoopbackTransport
from meshchat.core.peers import PeerResolver
from meshchat.core.suggestions import (
    SuggestionEngine, apply_mention, filter_command_suggestions, filter_mention_suggestions
)


def commands(descriptors):
    return [d.command for d in descriptors]


class TestCommandSuggestions:
    def test_prefix_b(self):
        result = commands(filter_command_suggestions("/b"))
        assert "/block" in result
        assert "/channels" not in result

    def test_case_insensitive(self):
        assert filter_command_suggestions("/B") == filter_command_suggestions("/b")

    def test_only_first_word_is_used(self):
        assert commands(filter_command_suggestions("/hug al")) == ["/hug"]

    def test_aliases_are_not_suggested(self):
        assert filter_command_suggestions("/jo") == []
        assert commands(filter_command_suggestions("/j")) == ["/j"]

    def test_slash_alone_lists_catalog(self):
        assert filter_command_suggestions("/") == list(COMMAND_CATALOG)

    def test_plain_text(self):
        assert filter_command_suggestions("hello") == []


class TestMentionSuggestions:
    def test_roster_order(self):
        assert filter_mention_suggestions("hello @al", ["alice", "albert", "bob"]) == ["alice", "albert"]

    def test_case_insensitive(self):
        assert filter_mention_suggestions("@AL", ["alice", "Albert"]) == ["alice", "Albert"]

    def test_bare_at_matches_everyone(self):
        assert filter_mention_suggestions("hi @", ["alice", "bob"]) == ["alice", "bob"]

    def test_no_at(self):
        assert filter_mention_suggestions("hello", ["alice"]) == []

    def test_last_at_wins(self):
        assert filter_mention_suggestions("@alice and @b", ["alice", "bob"]) == ["bob"]

    def test_apply_mention(self):
        assert apply_mention("hello @al", "alice") == "hello @alice "

    def test_apply_mention_keeps_text_after_cursor(self):
        assert apply_mention("hi @al there", "alice", cursor=6) == "hi @alice  there"

    def test_apply_mention_without_at(self):
        assert apply_mention("hello", "alice") == "alice"


class TestSuggestionEngine:
    @pytest.fixture
    def state(self):
        return InMemoryChatState(nickname="carol", connected_peers=["p1", "p2", "p3"])

    @pytest.fixture
    def resolver(self):
        return PeerResolver(LoopbackTransport("me", {"p1": "alice", "p2": "albert", "p3": "bob"}))

    def test_command_flags(self, state):
        engine = SuggestionEngine(state)
        engine.update_command_suggestions("/bl")
        assert commands(state.command_suggestions) == ["/block"]
        assert state.show_command_suggestions is True

        engine.update_command_suggestions("/zz")
        assert state.command_suggestions == []
        assert state.show_command_suggestions is False

    def test_non_command_hides_list(self, state):
        engine = SuggestionEngine(state)
        engine.update_command_suggestions("/b")
        engine.update_command_suggestions("hi")
        assert state.show_command_suggestions is False

    def test_select_command(self, state):
        engine = SuggestionEngine(state)
        engine.update_command_suggestions("/j")
        assert engine.select_command_suggestion(state.command_suggestions[0]) == "/j"
        assert state.show_command_suggestions is False

    def test_mentions(self, state, resolver):
        engine = SuggestionEngine(state)
        engine.update_mention_suggestions("hello @al", resolver)
        assert state.mention_suggestions == ["alice", "albert"]
        assert state.show_mention_suggestions is True

        assert engine.select_mention_suggestion("alice", "hello @al") == "hello @alice "
        assert state.show_mention_suggestions is False

    def test_mentions_hidden_without_at(self, state, resolver):
        engine = SuggestionEngine(state)
        engine.update_mention_suggestions("@a", resolver)
        engine.update_mention_suggestions("hello", resolver)
        assert state.show_mention_suggestions is False


class TestCatalog:
    def test_similar_includes_aliases(self):
        assert similar_commands("/joi") == ["/join"]
        assert similar_commands("/m") == ["/m", "/msg"]

    def test_command_list_mentions_every_command(self):
        listing = format_command_list()
        for descriptor in COMMAND_CATALOG:
            assert descriptor.command in listing
        assert "/j <channel> (/join)" in listing
