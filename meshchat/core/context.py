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

"""Which chat scope a command runs in."""

from dataclasses import dataclass
from typing import Union

from .interfaces import ChatState


@dataclass(frozen=True)
class MeshContext:
    """Public mesh timeline, no channel selected."""


@dataclass(frozen=True)
class LocationContext:
    geohash: str


@dataclass(frozen=True)
class PrivateChatContext:
    peer_id: str


@dataclass(frozen=True)
class ChannelContext:
    channel: str


ChatContext = Union[MeshContext, LocationContext, PrivateChatContext, ChannelContext]


def resolve_context(state: ChatState) -> ChatContext:
    """Pick the active scope: private chat, then location channel, then channel, then mesh."""
    if state.selected_private_peer is not None:
        return PrivateChatContext(state.selected_private_peer)
    if state.location_channel is not None:
        return LocationContext(state.location_channel)
    if state.current_channel is not None:
        return ChannelContext(state.current_channel)
    return MeshContext()
