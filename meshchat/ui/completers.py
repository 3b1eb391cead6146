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

"""prompt_toolkit completer for MeshChat commands and @-mentions."""

from typing import Iterable, TYPE_CHECKING

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from ..core.peers import PeerResolver
from ..core.suggestions import SuggestionEngine, mention_query

if TYPE_CHECKING:
    from prompt_toolkit.completion import CompleteEvent


class MeshChatCompleter(Completer):
    """Completer backed by the SuggestionEngine.

    This completer:
    - Completes command names while the first word is being typed (e.g., /bl -> /block)
    - Completes nicknames of connected peers after an '@' anywhere in the line
    """

    def __init__(self, engine: SuggestionEngine, resolver: PeerResolver):
        """Initialize the completer.

        Args:
            engine: Suggestion engine that also updates the chat state
            resolver: Resolver used to turn connected peer ids into nicknames
        """
        self.engine = engine
        self.resolver = resolver

    def get_completions(self, document: 'Document', complete_event: 'CompleteEvent') -> 'Iterable[Completion]':
        text = document.text_before_cursor

        if not text:
            return

        # Still typing the command word
        if text.startswith('/') and ' ' not in text:
            for descriptor in self.engine.update_command_suggestions(text):
                yield Completion(
                    text=descriptor.command,
                    start_position=-len(text),
                    display=descriptor.usage,
                    display_meta=descriptor.description,
                )
            return

        query = mention_query(text)
        if query is None or ' ' in query:
            return

        for nickname in self.engine.update_mention_suggestions(text, self.resolver):
            # Replaces the '@query' part
            yield Completion(
                text=f"@{nickname} ",
                start_position=-(len(query) + 1),
                display=f"@{nickname}",
                display_meta='(peer)',
            )
