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

"""UI events recorded by a chat session: inputs, commands and sends."""

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Optional

logger = logging.getLogger(__name__)


class UIEventType(Enum):
    """Types of UI events for logging and testing."""
    # Lifecycle
    APP_STARTED = auto()
    APP_STOPPED = auto()

    # Input
    INPUT_SUBMITTED = auto()

    # Commands
    COMMAND_RECEIVED = auto()
    COMMAND_EXECUTED = auto()
    UNKNOWN_COMMAND = auto()
    SYSTEM_MESSAGE_ADDED = auto()

    # Outbound
    MESSAGE_SENT = auto()
    PRIVATE_MESSAGE_SENT = auto()


@dataclass
class UIEvent:
    """A single UI event with timestamp and data."""
    type: UIEventType
    timestamp: str
    data: dict = field(default_factory=dict)

    def to_log_line(self) -> str:
        """Format as a parseable log line."""
        data_json = json.dumps(self.data, default=str, ensure_ascii=False)
        return f"UI_EVENT|{self.timestamp}|{self.type.name}|{data_json}"

    @classmethod
    def from_log_line(cls, line: str) -> Optional['UIEvent']:
        """Parse from log line format."""
        if not line.startswith("UI_EVENT|"):
            return None
        try:
            parts = line.split("|", 3)
            if len(parts) != 4:
                return None
            _, timestamp, event_name, data_json = parts
            return cls(
                type=UIEventType[event_name],
                timestamp=timestamp,
                data=json.loads(data_json)
            )
        except (KeyError, json.JSONDecodeError):
            return None


class UIEventEmitter:
    """Keeps the recent history of a chat session's UI events.

    The last ``max_events`` events stay queryable; with ``log_events`` each one
    is also written to the log as a ``UI_EVENT|...`` line.
    """

    def __init__(self, log_events: bool = False, max_events: int = 1000):
        self._event_log: deque[UIEvent] = deque(maxlen=max_events)
        self._log_events = log_events

    def emit(self, event_type: UIEventType, **data):
        """Record a UI event."""
        event = UIEvent(
            type=event_type,
            timestamp=datetime.now().isoformat(),
            data=data
        )
        self._event_log.append(event)

        if self._log_events:
            logger.info(event.to_log_line())

    def get_events(self, event_type: Optional[UIEventType] = None) -> list[UIEvent]:
        """Get events, optionally filtered by type."""
        if event_type is None:
            return list(self._event_log)
        return [e for e in self._event_log if e.type == event_type]

    def get_last_event(self, event_type: Optional[UIEventType] = None) -> Optional[UIEvent]:
        events = self.get_events(event_type)
        return events[-1] if events else None


def parse_ui_events_from_log(log_content: str) -> list[UIEvent]:
    """Parse UI events from log file content."""
    events = []
    for line in log_content.splitlines():
        start = line.find("UI_EVENT|")
        if start >= 0:
            event = UIEvent.from_log_line(line[start:])
            if event:
                events.append(event)
    return events
