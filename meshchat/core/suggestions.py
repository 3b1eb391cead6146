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

"""Command and @-mention autocomplete."""

from typing import Iterable, Optional, Sequence

from .catalog import COMMAND_CATALOG
from .interfaces import ChatState
from .models import CommandDescriptor
from .peers import PeerResolver


def filter_command_suggestions(
    text: str,
    catalog: Sequence[CommandDescriptor] = COMMAND_CATALOG
) -> list[CommandDescriptor]:
    """Catalog entries whose primary token starts with the typed command word.

    Only primary tokens are matched here; aliases are left to the
    unknown-command hint.

    Args:
        text: Current input text
        catalog: Commands to filter

    Returns:
        Matching descriptors in catalog order (empty if text is not a command)
    """
    if not text.startswith('/'):
        return []
    command_part = text.split(' ')[0].lower()
    return [d for d in catalog if d.command.lower().startswith(command_part)]


def mention_query(text: str) -> Optional[str]:
    """Text after the last '@', or None when there is no '@'."""
    last_at = text.rfind('@')
    if last_at == -1:
        return None
    return text[last_at + 1:]


def filter_mention_suggestions(text: str, nicknames: Iterable[str]) -> list[str]:
    """Nicknames starting with the current @-query, case-insensitively, in roster order."""
    query = mention_query(text)
    if query is None:
        return []
    query = query.lower()
    return [name for name in nicknames if name.lower().startswith(query)]


def apply_mention(text: str, nickname: str, cursor: Optional[int] = None) -> str:
    """Replace the text from the last '@' through the cursor with '@nickname '."""
    if cursor is None:
        cursor = len(text)
    last_at = text.rfind('@', 0, cursor)
    if last_at == -1:
        return nickname
    return text[:last_at + 1] + nickname + ' ' + text[cursor:]


class SuggestionEngine:
    """Keeps the suggestion fields on the chat state in sync with the input."""

    def __init__(self, state: ChatState, catalog: Sequence[CommandDescriptor] = COMMAND_CATALOG):
        self.state = state
        self.catalog = catalog

    def update_command_suggestions(self, text: str) -> list[CommandDescriptor]:
        if text.startswith('/'):
            suggestions = filter_command_suggestions(text, self.catalog)
            self.state.command_suggestions = suggestions
            self.state.show_command_suggestions = bool(suggestions)
            return suggestions
        self.state.show_command_suggestions = False
        return []

    def select_command_suggestion(self, suggestion: CommandDescriptor) -> str:
        """Hide the list and return the new input text (the bare command)."""
        self.state.show_command_suggestions = False
        return suggestion.command

    def update_mention_suggestions(self, text: str, resolver: PeerResolver) -> list[str]:
        if mention_query(text) is None:
            self.state.show_mention_suggestions = False
            return []
        nicknames = resolver.nicknames_for(self.state.connected_peers)
        suggestions = filter_mention_suggestions(text, nicknames)
        self.state.mention_suggestions = suggestions
        self.state.show_mention_suggestions = bool(suggestions)
        return suggestions

    def select_mention_suggestion(self, nickname: str, text: str,
                                  cursor: Optional[int] = None) -> str:
        self.state.show_mention_suggestions = False
        return apply_mention(text, nickname, cursor)
