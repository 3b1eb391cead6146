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

"""Core data types shared by the command interpreter."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Optional, Union

SYSTEM_SENDER = "system"


@dataclass(frozen=True)
class ChatMessage:
    """A single message on one of the timelines (main, channel or private)."""
    sender: str  # display name, or "system" for local feedback
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    is_relay: bool = False
    sender_peer_id: Optional[str] = None
    channel: Optional[str] = None  # set when the message belongs to a channel

    @property
    def is_system(self) -> bool:
        return self.sender == SYSTEM_SENDER


def system_message(content: str) -> ChatMessage:
    """Build a locally generated, non-relayed feedback message."""
    return ChatMessage(sender=SYSTEM_SENDER, content=content, is_relay=False)


@dataclass(frozen=True)
class CommandDescriptor:
    """Catalog entry for a slash command."""
    command: str  # primary token, e.g. "/j"
    aliases: tuple[str, ...] = ()
    syntax: Optional[str] = None  # argument hint, e.g. "<channel>"
    description: str = ""

    def tokens(self) -> Iterator[str]:
        """Yield the primary token followed by its aliases."""
        yield self.command
        yield from self.aliases

    @property
    def usage(self) -> str:
        if self.syntax:
            return f"{self.command} {self.syntax}"
        return self.command


@dataclass(frozen=True)
class BroadcastIntent:
    """Send content to the public mesh, optionally scoped to a channel."""
    content: str
    mentions: tuple[str, ...] = ()
    channel: Optional[str] = None


@dataclass(frozen=True)
class PrivateMessageIntent:
    """Send content privately to a resolved peer."""
    content: str
    peer_id: str
    recipient_nickname: str


SendIntent = Union[BroadcastIntent, PrivateMessageIntent]
