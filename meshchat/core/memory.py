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

"""In-memory chat state, timelines and a loopback transport.

These back the terminal client and the test suite. A real deployment swaps
them for the mesh-backed services behind the same interfaces.
"""

import logging
import secrets
import uuid
from dataclasses import dataclass, field
from typing import Optional

from .interfaces import PrivateSendCallback, Transport
from .models import ChatMessage, CommandDescriptor, system_message

logger = logging.getLogger(__name__)


def generate_peer_id() -> str:
    """Random 8-byte peer id rendered as 16 hex characters."""
    return secrets.token_hex(8)


@dataclass
class InMemoryChatState:
    """Plain attribute holder implementing the ChatState interface."""
    nickname: Optional[str] = None
    connected_peers: list[str] = field(default_factory=list)
    current_channel: Optional[str] = None
    selected_private_peer: Optional[str] = None
    location_channel: Optional[str] = None
    command_suggestions: list[CommandDescriptor] = field(default_factory=list)
    show_command_suggestions: bool = False
    mention_suggestions: list[str] = field(default_factory=list)
    show_mention_suggestions: bool = False


class LoopbackTransport:
    """Transport with a fixed peer directory that records outgoing private messages."""

    def __init__(self, my_peer_id: str, peer_nicknames: Optional[dict[str, str]] = None):
        self.my_peer_id = my_peer_id
        self.peer_nicknames: dict[str, str] = dict(peer_nicknames or {})
        self.sent_private: list[tuple[str, str, str, str]] = []

    def get_peer_nicknames(self) -> dict[str, str]:
        return dict(self.peer_nicknames)

    def get_my_peer_id(self) -> str:
        return self.my_peer_id

    def send_private_message(self, content: str, peer_id: str,
                             recipient_nickname: str, message_id: str) -> None:
        logger.debug("Private message %s -> %s", message_id, peer_id)
        self.sent_private.append((content, peer_id, recipient_nickname, message_id))


class MessageStore:
    """Main timeline plus per-channel and per-peer private timelines."""

    def __init__(self):
        self.messages: list[ChatMessage] = []
        self.channel_messages: dict[str, list[ChatMessage]] = {}
        self.private_chats: dict[str, list[ChatMessage]] = {}

    def add_message(self, message: ChatMessage) -> None:
        self.messages.append(message)

    def add_channel_message(self, channel: str, message: ChatMessage) -> None:
        self.channel_messages.setdefault(channel, []).append(message)

    def add_private_message(self, peer_id: str, message: ChatMessage) -> None:
        self.private_chats.setdefault(peer_id, []).append(message)

    def clear_messages(self) -> None:
        self.messages.clear()

    def clear_channel_messages(self, channel: str) -> None:
        self.channel_messages[channel] = []

    def clear_private_messages(self, peer_id: str) -> None:
        self.private_chats[peer_id] = []


class ChannelStore:
    """Joined channels, their creators and passwords."""

    def __init__(self, state: InMemoryChatState, messages: MessageStore):
        self.state = state
        self.messages = messages
        self.joined_channels: list[str] = []
        self.creators: dict[str, str] = {}
        self.passwords: dict[str, str] = {}

    def join_channel(self, channel: str, password: Optional[str], my_peer_id: str) -> bool:
        expected = self.passwords.get(channel)
        if expected is not None and password != expected:
            logger.info("Wrong password for %s", channel)
            self.messages.add_message(system_message(f"wrong password for channel {channel}"))
            return False

        if channel not in self.joined_channels:
            self.joined_channels.append(channel)
            # The first local joiner of an unknown channel creates it
            self.creators.setdefault(channel, my_peer_id)
            if password is not None and expected is None:
                self.passwords[channel] = password
            logger.info("Joined channel %s", channel)
        self.state.current_channel = channel
        self.state.selected_private_peer = None
        return True

    def is_channel_creator(self, channel: str, peer_id: str) -> bool:
        return self.creators.get(channel) == peer_id

    def set_channel_password(self, channel: str, password: str) -> None:
        logger.info("Password changed for %s", channel)
        self.passwords[channel] = password

    def add_channel_message(self, channel: str, message: ChatMessage,
                            sender_peer_id: Optional[str]) -> None:
        self.messages.add_channel_message(channel, message)

    def get_joined_channels_list(self) -> list[str]:
        return list(self.joined_channels)


class PrivateChatStore:
    """Private chat sessions and the local block list."""

    def __init__(self, state: InMemoryChatState, messages: MessageStore):
        self.state = state
        self.messages = messages
        self.blocked: dict[str, str] = {}  # peer_id -> nickname at time of blocking

    def start_private_chat(self, peer_id: str, transport: Transport) -> bool:
        if peer_id in self.blocked:
            self.messages.add_message(system_message(
                f"cannot start chat with {self.blocked[peer_id]}: user is blocked."
            ))
            return False
        self.state.selected_private_peer = peer_id
        self.messages.private_chats.setdefault(peer_id, [])
        return True

    def send_private_message(self, content: str, peer_id: str, recipient_nickname: str,
                             sender_nickname: Optional[str], my_peer_id: str,
                             on_sent: PrivateSendCallback) -> None:
        message_id = str(uuid.uuid4()).upper()
        self.messages.add_private_message(peer_id, ChatMessage(
            sender=sender_nickname or my_peer_id,
            content=content,
            sender_peer_id=my_peer_id,
        ))
        on_sent(content, peer_id, recipient_nickname, message_id)

    def _peer_for(self, nickname: str, transport: Transport) -> Optional[str]:
        for peer_id, peer_nickname in transport.get_peer_nicknames().items():
            if peer_nickname == nickname:
                return peer_id
        return None

    def block_peer_by_nickname(self, nickname: str, transport: Transport) -> None:
        peer_id = self._peer_for(nickname, transport)
        if peer_id is None:
            self.messages.add_message(system_message(f"user '{nickname}' not found"))
            return
        self.blocked[peer_id] = nickname
        if self.state.selected_private_peer == peer_id:
            self.state.selected_private_peer = None
        logger.info("Blocked %s (%s)", nickname, peer_id)
        self.messages.add_message(system_message(
            f"blocked {nickname}. you will no longer receive messages from them."
        ))

    def unblock_peer_by_nickname(self, nickname: str, transport: Transport) -> None:
        peer_id = self._peer_for(nickname, transport)
        if peer_id is None or peer_id not in self.blocked:
            self.messages.add_message(system_message(f"user '{nickname}' is not blocked"))
            return
        del self.blocked[peer_id]
        logger.info("Unblocked %s (%s)", nickname, peer_id)
        self.messages.add_message(system_message(f"unblocked {nickname}"))

    def list_blocked_users(self) -> str:
        if not self.blocked:
            return "no blocked peers."
        return f"blocked peers: {', '.join(self.blocked.values())}"


class StaticPresence:
    """Location participants supplied up front."""

    def __init__(self, participants: Optional[list[str]] = None):
        self.participants = list(participants or [])

    def get_location_participants(self) -> list[str]:
        return list(self.participants)
