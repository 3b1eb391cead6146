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

"""Nickname <-> peer id resolution against the transport's live directory."""

import logging
from typing import Iterable, Optional

from .interfaces import Transport

logger = logging.getLogger(__name__)


class PeerResolver:
    """Resolves nicknames and peer ids.

    The directory is fetched from the transport on every lookup since peers
    come and go. Nicknames are assumed unique; when two peers share one, the
    first entry in the directory wins.
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    def resolve_identity(self, nickname: str) -> Optional[str]:
        """Return the peer id using this exact nickname, or None."""
        for peer_id, peer_nickname in self.transport.get_peer_nicknames().items():
            if peer_nickname == nickname:
                return peer_id
        logger.debug("No peer found for nickname '%s'", nickname)
        return None

    def resolve_nickname(self, peer_id: str) -> str:
        """Return the nickname for peer_id, or the raw id if the directory lags."""
        return self.transport.get_peer_nicknames().get(peer_id, peer_id)

    def nicknames_for(self, peer_ids: Iterable[str]) -> list[str]:
        directory = self.transport.get_peer_nicknames()
        return [directory.get(peer_id, peer_id) for peer_id in peer_ids]
