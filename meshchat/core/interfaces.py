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

"""Collaborator interfaces consumed by the command interpreter.

The mesh transport, channel storage and private chat storage live outside
this package. The dispatcher only talks to them through these protocols, so
any object with matching methods (including the in-memory stores in
``meshchat.core.memory``) can be plugged in.
"""

from typing import Callable, Optional, Protocol

from .models import ChatMessage, CommandDescriptor

# (content, peer_id, recipient_nickname, message_id)
PrivateSendCallback = Callable[[str, str, str, str], None]

# (content, mentioned_nicknames, channel)
SendMessageCallback = Callable[[str, list[str], Optional[str]], None]


class Transport(Protocol):
    def get_peer_nicknames(self) -> dict[str, str]:
        """Current peer_id -> nickname directory."""
        ...

    def get_my_peer_id(self) -> str:
        ...

    def send_private_message(self, content: str, peer_id: str,
                             recipient_nickname: str, message_id: str) -> None:
        ...


class ChannelManager(Protocol):
    def join_channel(self, channel: str, password: Optional[str], my_peer_id: str) -> bool:
        ...

    def is_channel_creator(self, channel: str, peer_id: str) -> bool:
        ...

    def set_channel_password(self, channel: str, password: str) -> None:
        ...

    def add_channel_message(self, channel: str, message: ChatMessage,
                            sender_peer_id: Optional[str]) -> None:
        ...

    def get_joined_channels_list(self) -> list[str]:
        ...


class PrivateChatManager(Protocol):
    def start_private_chat(self, peer_id: str, transport: Transport) -> bool:
        ...

    def send_private_message(self, content: str, peer_id: str, recipient_nickname: str,
                             sender_nickname: Optional[str], my_peer_id: str,
                             on_sent: PrivateSendCallback) -> None:
        ...

    def block_peer_by_nickname(self, nickname: str, transport: Transport) -> None:
        ...

    def unblock_peer_by_nickname(self, nickname: str, transport: Transport) -> None:
        ...

    def list_blocked_users(self) -> str:
        ...


class MessageManager(Protocol):
    def add_message(self, message: ChatMessage) -> None:
        ...

    def clear_messages(self) -> None:
        ...

    def clear_channel_messages(self, channel: str) -> None:
        ...

    def clear_private_messages(self, peer_id: str) -> None:
        ...


class ChatState(Protocol):
    """Shared chat state. Read by the handlers; suggestion fields are written back."""
    nickname: Optional[str]
    connected_peers: list[str]
    current_channel: Optional[str]
    selected_private_peer: Optional[str]
    location_channel: Optional[str]  # geohash of the active location channel

    command_suggestions: list[CommandDescriptor]
    show_command_suggestions: bool
    mention_suggestions: list[str]
    show_mention_suggestions: bool


class LocationPresence(Protocol):
    """Optional UI context exposing who is present in the location channel."""

    def get_location_participants(self) -> list[str]:
        """Display names of location participants, self included."""
        ...
