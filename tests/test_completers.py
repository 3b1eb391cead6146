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

"""Tests for MeshChat command and mention completion."""

import pytest
from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document

from meshchat.core.memory import InMemoryChatState, LoopbackTransport
from meshchat.core.peers import PeerResolver
from meshchat.core.suggestions import SuggestionEngine
from meshchat.ui.completers import MeshChatCompleter


class TestMeshChatCompleter:
    """Tests for the MeshChatCompleter."""

    @pytest.fixture
    def state(self):
        return InMemoryChatState(nickname="carol", connected_peers=["p1", "p2", "p3"])

    @pytest.fixture
    def completer(self, state):
        transport = LoopbackTransport("me", {"p1": "alice", "p2": "albert", "p3": "bob"})
        return MeshChatCompleter(SuggestionEngine(state), PeerResolver(transport))

    def complete(self, completer, text):
        document = Document(text, cursor_position=len(text))
        return list(completer.get_completions(document, CompleteEvent()))

    def test_command_name_completion(self, completer, state):
        completions = self.complete(completer, '/b')
        assert [c.text for c in completions] == ['/block']
        assert completions[0].start_position == -2
        assert state.show_command_suggestions is True

    def test_command_completion_case_insensitive(self, completer):
        texts = [c.text for c in self.complete(completer, '/CL')]
        assert texts == ['/clear']

    def test_no_command_completion_after_space(self, completer):
        assert self.complete(completer, '/block ') == []

    def test_mention_completion(self, completer, state):
        completions = self.complete(completer, 'hello @al')
        assert [c.text for c in completions] == ['@alice ', '@albert ']
        assert completions[0].start_position == -3
        assert state.mention_suggestions == ['alice', 'albert']

    def test_mention_inside_command_arguments(self, completer):
        texts = [c.text for c in self.complete(completer, '/hug @b')]
        assert texts == ['@bob ']

    def test_no_completion_for_plain_text(self, completer):
        assert self.complete(completer, 'hello') == []

    def test_finished_mention_not_completed(self, completer):
        assert self.complete(completer, 'hi @alice there') == []
