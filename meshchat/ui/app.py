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

"""Terminal UI for MeshChat."""

import logging
import re
from typing import Callable, Optional

from prompt_toolkit import PromptSession, print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.styles import Style

from ..core.commands import CommandDispatcher
from ..core.config import Config
from ..core.interfaces import LocationPresence, Transport
from ..core.memory import (
    ChannelStore, InMemoryChatState, LoopbackTransport, MessageStore, PrivateChatStore
)
from ..core.models import BroadcastIntent, ChatMessage, PrivateMessageIntent
from ..core.peers import PeerResolver
from ..core.suggestions import SuggestionEngine
from .completers import MeshChatCompleter
from .events import UIEventEmitter, UIEventType

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r'@([^\s@]+)')

STYLE = Style.from_dict({
    'timestamp': '#888888',
    'system': '#888888 italic',
    'sender': 'bold',
    'prompt': '#00aa00',
})


def extract_mentions(content: str) -> list[str]:
    """Nicknames referenced with '@' in a chat line, in order, without duplicates."""
    mentions = []
    for name in MENTION_PATTERN.findall(content):
        if name not in mentions:
            mentions.append(name)
    return mentions


def format_message(message: ChatMessage) -> str:
    stamp = message.timestamp.strftime('%H:%M')
    if message.is_system:
        return f"[{stamp}] * {message.content}"
    scope = f"{message.channel} " if message.channel else ""
    return f"[{stamp}] {scope}<{message.sender}> {message.content}"


class ChatSession:
    """Wires the command dispatcher to in-memory timelines and a transport."""

    def __init__(
        self,
        config: Config,
        transport: Optional[Transport] = None,
        presence: Optional[LocationPresence] = None,
        events: Optional[UIEventEmitter] = None,
    ):
        self.config = config
        self.transport = transport or LoopbackTransport(config.peer_id)
        self.presence = presence
        self.events = events or UIEventEmitter(log_events=config.log_events)

        self.state = InMemoryChatState(nickname=config.nickname)
        self.messages = MessageStore()
        self.channels = ChannelStore(self.state, self.messages)
        self.private_chats = PrivateChatStore(self.state, self.messages)
        self.dispatcher = CommandDispatcher(
            self.state, self.messages, self.channels, self.private_chats
        )
        self.resolver = PeerResolver(self.transport)
        self.suggestions = SuggestionEngine(self.state)

        # Public sends handed to the mesh: (content, mentions, channel)
        self.outbox: list[tuple[str, list[str], Optional[str]]] = []
        self._printed: dict[tuple, int] = {}

        for channel in config.autojoin:
            self.channels.join_channel(channel, None, self.my_peer_id)

    @property
    def my_peer_id(self) -> str:
        return self.transport.get_my_peer_id()

    def refresh_peers(self) -> None:
        """Treat every peer in the transport directory as connected."""
        self.state.connected_peers = list(self.transport.get_peer_nicknames().keys())

    def submit(self, line: str) -> bool:
        """Handle one submitted input line.

        Returns:
            True if the line was processed as a command
        """
        line = line.strip()
        if not line:
            return False
        self.events.emit(UIEventType.INPUT_SUBMITTED, text=line)
        self.refresh_peers()

        if not line.startswith('/'):
            self.send_chat(line)
            return False

        self.events.emit(UIEventType.COMMAND_RECEIVED, command=line)
        result = self.dispatcher.interpret(line, self.transport, self.my_peer_id, self.presence)
        for intent in result.intents:
            self.dispatcher.execute_intent(intent, self.transport, self.my_peer_id, self.send_public)
            if isinstance(intent, PrivateMessageIntent):
                self.events.emit(UIEventType.PRIVATE_MESSAGE_SENT, peer_id=intent.peer_id,
                                 content=intent.content)
        for message in result.messages:
            self.events.emit(UIEventType.SYSTEM_MESSAGE_ADDED, content=message.content)

        if result.command is None:
            self.events.emit(UIEventType.UNKNOWN_COMMAND, command=line.split(' ')[0])
        else:
            self.events.emit(UIEventType.COMMAND_EXECUTED, command=result.command,
                             intents=len(result.intents))
        return result.handled

    def send_chat(self, content: str) -> None:
        """Send plain text to whichever scope is active and echo it locally."""
        state = self.state
        sender = state.nickname or self.my_peer_id
        if state.selected_private_peer is not None:
            peer_id = state.selected_private_peer
            intent = PrivateMessageIntent(content, peer_id, self.resolver.resolve_nickname(peer_id))
            self.dispatcher.execute_intent(intent, self.transport, self.my_peer_id, self.send_public)
            return

        mentions = tuple(extract_mentions(content))
        channel = state.current_channel if state.location_channel is None else None
        if state.location_channel is None:
            message = ChatMessage(sender=sender, content=content,
                                  sender_peer_id=self.my_peer_id, channel=channel)
            if channel is not None:
                self.channels.add_channel_message(channel, message, self.my_peer_id)
            else:
                self.messages.add_message(message)
        intent = BroadcastIntent(content, mentions, channel)
        self.dispatcher.execute_intent(intent, self.transport, self.my_peer_id, self.send_public)

    def send_public(self, content: str, mentions: list[str], channel: Optional[str]) -> None:
        logger.debug("Broadcast to %s: %s", channel or "mesh", content)
        self.outbox.append((content, mentions, channel))
        self.events.emit(UIEventType.MESSAGE_SENT, content=content, mentions=mentions,
                         channel=channel)

    def _timelines(self) -> list[tuple[tuple, list[ChatMessage]]]:
        timelines = [(('main',), self.messages.messages)]
        for channel, items in self.messages.channel_messages.items():
            timelines.append((('channel', channel), items))
        for peer_id, items in self.messages.private_chats.items():
            timelines.append((('private', peer_id), items))
        return timelines

    def drain(self) -> list[ChatMessage]:
        """Messages appended to any timeline since the last call."""
        fresh = []
        for key, items in self._timelines():
            seen = min(self._printed.get(key, 0), len(items))
            fresh.extend(items[seen:])
            self._printed[key] = len(items)
        fresh.sort(key=lambda m: m.timestamp)
        return fresh

    def prompt_label(self) -> str:
        state = self.state
        if state.selected_private_peer is not None:
            scope = f"@{self.resolver.resolve_nickname(state.selected_private_peer)}"
        elif state.location_channel is not None:
            scope = f"#{state.location_channel}"
        elif state.current_channel is not None:
            scope = state.current_channel
        else:
            scope = "mesh"
        return f"[{scope}] {state.nickname}> "


def run_batch_lines(
    lines: list[str],
    session: ChatSession,
    output: Callable[[str], None] = print,
) -> int:
    """Run lines non-interactively, printing every new timeline message.

    Blank lines and lines starting with '#' are skipped.
    """
    for line_num, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        logger.debug(f"Executing line {line_num}: {line}")
        session.submit(line)
        for message in session.drain():
            output(format_message(message))
    return 0


def _print_message(message: ChatMessage) -> None:
    stamp = ('class:timestamp', f"[{message.timestamp.strftime('%H:%M')}] ")
    if message.is_system:
        fragments = [stamp, ('class:system', f"* {message.content}")]
    else:
        scope = f"{message.channel} " if message.channel else ""
        fragments = [stamp, ('', scope), ('class:sender', f"<{message.sender}>"),
                     ('', f" {message.content}")]
    print_formatted_text(FormattedText(fragments), style=STYLE)


def run_ui(session: ChatSession) -> None:  # pragma: no cover - interactive loop
    """Run the interactive prompt until Ctrl+C or Ctrl+D."""
    prompt_session = PromptSession(
        completer=MeshChatCompleter(session.suggestions, session.resolver),
        complete_while_typing=True,
        style=STYLE,
    )
    session.events.emit(UIEventType.APP_STARTED, nickname=session.state.nickname)
    try:
        while True:
            try:
                session.refresh_peers()
                line = prompt_session.prompt([('class:prompt', session.prompt_label())])
            except KeyboardInterrupt:
                continue
            except EOFError:
                break
            session.submit(line)
            for message in session.drain():
                _print_message(message)
    finally:
        session.events.emit(UIEventType.APP_STOPPED)
