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

"""Command parsing and handling for MeshChat."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .catalog import COMMAND_CATALOG, similar_commands
from .context import (
    ChannelContext, ChatContext, LocationContext, PrivateChatContext, resolve_context
)
from .interfaces import (
    ChannelManager, ChatState, LocationPresence, MessageManager, PrivateChatManager,
    SendMessageCallback, Transport
)
from .models import (
    BroadcastIntent, ChatMessage, CommandDescriptor, PrivateMessageIntent, SendIntent,
    system_message
)
from .peers import PeerResolver

logger = logging.getLogger(__name__)

# (verb, object phrase) for the action commands
ACTIONS = {
    '/hug': ('gives', 'a warm hug 🫂'),
    '/slap': ('slaps', 'around a bit with a large trout 🐟'),
}

NO_ONE_AROUND = "no one else is around right now."


@dataclass
class CommandResult:
    """Result of a command execution."""
    handled: bool = False
    command: Optional[str] = None  # matched command key, None when unknown
    intents: list[SendIntent] = field(default_factory=list)
    messages: list[ChatMessage] = field(default_factory=list)  # feedback posted locally


@dataclass
class CommandInvocation:
    """Everything a handler may consult while running one command."""
    parts: list[str]
    transport: Transport
    my_peer_id: str
    resolver: PeerResolver
    context: ChatContext
    result: CommandResult
    presence: Optional[LocationPresence] = None


Handler = Callable[[CommandInvocation], None]


def build_action_message(nickname: Optional[str], command: str, target: str) -> str:
    """Third-person action text, e.g. '* alice gives bob a warm hug 🫂 *'."""
    verb, action_object = ACTIONS[command]
    return f"* {nickname or 'someone'} {verb} {target} {action_object} *"


class CommandDispatcher:
    """Recognizes slash commands and runs them against the chat collaborators."""

    def __init__(
        self,
        state: ChatState,
        message_manager: MessageManager,
        channel_manager: ChannelManager,
        private_chat_manager: PrivateChatManager,
        catalog: Sequence[CommandDescriptor] = COMMAND_CATALOG,
    ):
        """Initialize the dispatcher.

        Args:
            state: Shared chat state
            message_manager: Main and private timeline store
            channel_manager: Channel membership and channel timelines
            private_chat_manager: Private chat sessions and block list
            catalog: Commands offered to the user
        """
        self.state = state
        self.message_manager = message_manager
        self.channel_manager = channel_manager
        self.private_chat_manager = private_chat_manager
        self.catalog = catalog

        handlers: dict[str, Handler] = {
            '/j': self.handle_join,
            '/m': self.handle_msg,
            '/w': self.handle_who,
            '/clear': self.handle_clear,
            '/pass': self.handle_pass,
            '/block': self.handle_block,
            '/unblock': self.handle_unblock,
            '/hug': self.handle_action,
            '/slap': self.handle_action,
            '/channels': self.handle_channels,
        }
        # Every catalog token (primary and alias) routes to its handler
        self.dispatch_table: dict[str, Handler] = {}
        for descriptor in catalog:
            handler = handlers[descriptor.command]
            for token in descriptor.tokens():
                self.dispatch_table[token.lower()] = handler

    def interpret(
        self,
        raw_input: str,
        transport: Transport,
        my_peer_id: str,
        presence: Optional[LocationPresence] = None,
    ) -> CommandResult:
        """Run a command line and return what it produced without sending anything.

        Args:
            raw_input: Line typed by the user
            transport: Mesh transport (peer directory, private delivery)
            my_peer_id: Local peer id
            presence: Optional location participant source for /w

        Returns:
            CommandResult; handled is False only when the input is not a command
        """
        if not raw_input.startswith('/'):
            return CommandResult(handled=False)

        parts = raw_input.split(' ')
        command = parts[0].lower()
        result = CommandResult(handled=True)
        invocation = CommandInvocation(
            parts=parts,
            transport=transport,
            my_peer_id=my_peer_id,
            resolver=PeerResolver(transport),
            context=resolve_context(self.state),
            result=result,
            presence=presence,
        )

        handler = self.dispatch_table.get(command)
        if handler is None:
            logger.info("Unknown command: %s", command)
            self.handle_unknown(invocation)
        else:
            logger.debug("Running command %s with %d argument(s)", command, len(parts) - 1)
            result.command = command
            handler(invocation)
        return result

    def process(
        self,
        raw_input: str,
        transport: Transport,
        my_peer_id: str,
        on_send_message: SendMessageCallback,
        presence: Optional[LocationPresence] = None,
    ) -> bool:
        """Run a command line and carry out its sends.

        Returns:
            True if the line was a command (known or not), False otherwise
        """
        result = self.interpret(raw_input, transport, my_peer_id, presence)
        for intent in result.intents:
            self.execute_intent(intent, transport, my_peer_id, on_send_message)
        return result.handled

    def execute_intent(
        self,
        intent: SendIntent,
        transport: Transport,
        my_peer_id: str,
        on_send_message: SendMessageCallback,
    ) -> None:
        if isinstance(intent, PrivateMessageIntent):
            self.private_chat_manager.send_private_message(
                intent.content,
                intent.peer_id,
                intent.recipient_nickname,
                self.state.nickname,
                my_peer_id,
                on_sent=transport.send_private_message,
            )
        else:
            on_send_message(intent.content, list(intent.mentions), intent.channel)

    # Feedback helpers

    def _post(self, invocation: CommandInvocation, content: str) -> None:
        message = system_message(content)
        invocation.result.messages.append(message)
        self.message_manager.add_message(message)

    def _post_to_channel(self, invocation: CommandInvocation, channel: str, content: str) -> None:
        message = system_message(content)
        invocation.result.messages.append(message)
        self.channel_manager.add_channel_message(channel, message, None)

    # Handlers

    def handle_join(self, invocation: CommandInvocation) -> None:
        parts = invocation.parts
        if len(parts) < 2:
            self._post(invocation, "usage: /join <channel>")
            return

        channel_name = parts[1]
        channel = channel_name if channel_name.startswith('#') else f"#{channel_name}"
        password = parts[2] if len(parts) > 2 else None
        if self.channel_manager.join_channel(channel, password, invocation.my_peer_id):
            self._post(invocation, f"joined channel {channel}")
        else:
            logger.info("Join of %s was rejected", channel)

    def handle_msg(self, invocation: CommandInvocation) -> None:
        parts = invocation.parts
        if len(parts) < 2:
            self._post(invocation, "usage: /msg <nickname> [message]")
            return

        target_name = parts[1].removeprefix('@')
        peer_id = invocation.resolver.resolve_identity(target_name)
        if peer_id is None:
            self._post(
                invocation,
                f"user '{target_name}' not found. they may be offline or using a different nickname."
            )
            return

        if not self.private_chat_manager.start_private_chat(peer_id, invocation.transport):
            logger.info("Private chat with %s was not started", peer_id)
            return

        if len(parts) > 2:
            content = ' '.join(parts[2:])
            invocation.result.intents.append(PrivateMessageIntent(
                content=content,
                peer_id=peer_id,
                recipient_nickname=invocation.resolver.resolve_nickname(peer_id),
            ))
        else:
            self._post(invocation, f"started private chat with {target_name}")

    def handle_who(self, invocation: CommandInvocation) -> None:
        # Location participants take precedence over any private chat selection
        geohash = self.state.location_channel
        if geohash is not None and invocation.presence is not None:
            prefix = f"{self.state.nickname}#"
            names = [
                name for name in invocation.presence.get_location_participants()
                if not name.startswith(prefix)
            ]
            description = f"participants in {geohash}"
        else:
            names = invocation.resolver.nicknames_for(self.state.connected_peers)
            description = "online users"

        if names:
            self._post(invocation, f"{description}: {', '.join(names)}")
        else:
            self._post(invocation, NO_ONE_AROUND)

    def handle_clear(self, invocation: CommandInvocation) -> None:
        # Private chat wins over channel, channel over main timeline
        if self.state.selected_private_peer is not None:
            self.message_manager.clear_private_messages(self.state.selected_private_peer)
        elif self.state.current_channel is not None:
            self.message_manager.clear_channel_messages(self.state.current_channel)
        else:
            self.message_manager.clear_messages()

    def handle_pass(self, invocation: CommandInvocation) -> None:
        channel = self.state.current_channel
        if channel is None:
            self._post(invocation, "you must be in a channel to set a password.")
            return

        parts = invocation.parts
        if len(parts) != 2:
            self._post_to_channel(invocation, channel, "usage: /pass <password>")
            return

        if not self.channel_manager.is_channel_creator(channel, invocation.my_peer_id):
            self._post_to_channel(invocation, channel, "you must be the channel creator to set a password.")
            return

        self.channel_manager.set_channel_password(channel, parts[1])
        self._post_to_channel(invocation, channel, f"password changed for channel {channel}")

    def handle_block(self, invocation: CommandInvocation) -> None:
        parts = invocation.parts
        if len(parts) > 1:
            target_name = parts[1].removeprefix('@')
            self.private_chat_manager.block_peer_by_nickname(target_name, invocation.transport)
        else:
            self._post(invocation, self.private_chat_manager.list_blocked_users())

    def handle_unblock(self, invocation: CommandInvocation) -> None:
        parts = invocation.parts
        if len(parts) > 1:
            target_name = parts[1].removeprefix('@')
            self.private_chat_manager.unblock_peer_by_nickname(target_name, invocation.transport)
        else:
            self._post(invocation, "usage: /unblock <nickname>")

    def handle_action(self, invocation: CommandInvocation) -> None:
        parts = invocation.parts
        command = parts[0].lower()
        if len(parts) < 2:
            self._post(invocation, f"usage: /{command.removeprefix('/')} <nickname>")
            return

        target_name = parts[1].removeprefix('@')
        content = build_action_message(self.state.nickname, command, target_name)
        context = invocation.context
        intents = invocation.result.intents

        if isinstance(context, PrivateChatContext):
            intents.append(PrivateMessageIntent(
                content=content,
                peer_id=context.peer_id,
                recipient_nickname=invocation.resolver.resolve_nickname(context.peer_id),
            ))
        elif isinstance(context, LocationContext):
            # The location transport echoes the message itself
            intents.append(BroadcastIntent(content))
        else:
            my_peer_id = invocation.my_peer_id
            channel = context.channel if isinstance(context, ChannelContext) else None
            message = ChatMessage(
                sender=self.state.nickname or my_peer_id,
                content=content,
                is_relay=False,
                sender_peer_id=my_peer_id,
                channel=channel,
            )
            if channel is not None:
                self.channel_manager.add_channel_message(channel, message, my_peer_id)
            else:
                self.message_manager.add_message(message)
            intents.append(BroadcastIntent(content, channel=channel))

    def handle_channels(self, invocation: CommandInvocation) -> None:
        channels = self.channel_manager.get_joined_channels_list()
        if channels:
            self._post(invocation, f"available channels: {', '.join(channels)}")
        else:
            self._post(invocation, "no channels discovered")

    def handle_unknown(self, invocation: CommandInvocation) -> None:
        command = invocation.parts[0].lower()
        similar = similar_commands(command, self.catalog)
        did_you_mean = f", did you mean: {', '.join(similar)}" if similar else ""
        self._post(invocation, f"unknown command '{command}'{did_you_mean}")
