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

"""The command catalog: every slash command MeshChat understands."""

from .models import CommandDescriptor


COMMAND_CATALOG: tuple[CommandDescriptor, ...] = (
    CommandDescriptor("/block", (), "[nickname]", "block or list blocked peers"),
    CommandDescriptor("/channels", (), None, "show all discovered channels"),
    CommandDescriptor("/clear", (), None, "clear chat messages"),
    CommandDescriptor("/hug", (), "<nickname>", "send someone a warm hug"),
    CommandDescriptor("/j", ("/join",), "<channel>", "join or create a channel"),
    CommandDescriptor("/m", ("/msg",), "<nickname> [message]", "send private message"),
    CommandDescriptor("/pass", (), "<password>", "set or change the channel password"),
    CommandDescriptor("/slap", (), "<nickname>", "slap someone with a trout"),
    CommandDescriptor("/unblock", (), "<nickname>", "unblock a peer"),
    CommandDescriptor("/w", (), None, "see who's online"),
)


def similar_commands(token: str, catalog=COMMAND_CATALOG) -> list[str]:
    """Catalog tokens (primary or alias) that start with the given token.

    Used for "did you mean" feedback on unknown commands.
    """
    token = token.lower()
    matches = []
    for descriptor in catalog:
        for candidate in descriptor.tokens():
            if candidate.lower().startswith(token) and candidate not in matches:
                matches.append(candidate)
    return matches


def format_command_list(catalog=COMMAND_CATALOG) -> str:
    """Format the catalog as an aligned two-column listing."""
    lines = ["Commands:"]
    for descriptor in catalog:
        usage = descriptor.usage
        if descriptor.aliases:
            usage = f"{usage} ({', '.join(descriptor.aliases)})"
        lines.append(f"  {usage:<36} {descriptor.description}")
    return "\n".join(lines)
