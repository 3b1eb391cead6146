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

import unittest

from meshchat.core.config import Config
from meshchat.core.memory import LoopbackTransport, StaticPresence
from meshchat.ui.app import ChatSession, extract_mentions, format_message, run_batch_lines
from meshchat.ui.events import UIEvent, UIEventEmitter, UIEventType, parse_ui_events_from_log

ME = "00aa00aa00aa00aa"


def make_session(autojoin=None, presence=None):
    config = Config(nickname="carol", peer_id=ME, log_level="INFO", log_file=None,
                    autojoin=autojoin or [])
    transport = LoopbackTransport(ME, {"p1": "alice", "p2": "bob"})
    return ChatSession(config, transport=transport, presence=presence)


class ChatSessionTests(unittest.TestCase):
    def test_autojoin(self):
        session = make_session(autojoin=["#general"])
        self.assertEqual(session.state.current_channel, "#general")
        self.assertEqual(session.prompt_label(), "[#general] carol> ")

    def test_plain_chat_in_mesh(self):
        session = make_session()
        handled = session.submit("hi @bob and @alice @bob")
        self.assertFalse(handled)
        self.assertEqual(session.outbox, [("hi @bob and @alice @bob", ["bob", "alice"], None)])
        self.assertEqual([m.content for m in session.messages.messages], ["hi @bob and @alice @bob"])

    def test_plain_chat_in_channel(self):
        session = make_session(autojoin=["#dev"])
        session.submit("hello")
        self.assertEqual(session.outbox, [("hello", [], "#dev")])
        self.assertEqual([m.content for m in session.messages.channel_messages["#dev"]], ["hello"])

    def test_plain_chat_in_private(self):
        session = make_session()
        session.submit("/msg alice")
        session.submit("psst")
        self.assertEqual(session.outbox, [])
        self.assertEqual(session.transport.sent_private[0][:3], ("psst", "p1", "alice"))
        self.assertEqual(session.prompt_label(), "[@alice] carol> ")

    def test_command_events(self):
        session = make_session()
        session.submit("/hug bob")
        session.submit("/nope")
        executed = session.events.get_last_event(UIEventType.COMMAND_EXECUTED)
        self.assertEqual(executed.data, {"command": "/hug", "intents": 1})
        unknown = session.events.get_last_event(UIEventType.UNKNOWN_COMMAND)
        self.assertEqual(unknown.data["command"], "/nope")
        sent = session.events.get_last_event(UIEventType.MESSAGE_SENT)
        self.assertEqual(sent.data["channel"], None)

    def test_who_uses_presence(self):
        session = make_session(presence=StaticPresence(["carol#0001", "zed#0002"]))
        session.state.location_channel = "u4pruy"
        session.submit("/w")
        self.assertEqual(session.drain()[-1].content, "participants in u4pruy: zed#0002")

    def test_drain_returns_only_new_messages(self):
        session = make_session()
        session.submit("/channels")
        self.assertEqual([m.content for m in session.drain()], ["no channels discovered"])
        self.assertEqual(session.drain(), [])


class BatchTests(unittest.TestCase):
    def test_run_batch_lines(self):
        session = make_session()
        output = []
        script = [
            "# comment",
            "",
            "/join dev",
            "/hug bob",
            "/w",
            "/joi",
        ]
        exit_code = run_batch_lines(script, session, output=output.append)
        self.assertEqual(exit_code, 0)
        text = "\n".join(output)
        self.assertIn("* joined channel #dev", text)
        self.assertIn("#dev <carol> * carol gives bob a warm hug 🫂 *", text)
        self.assertIn("online users: alice, bob", text)
        self.assertIn("unknown command '/joi', did you mean: /join", text)


class HelperTests(unittest.TestCase):
    def test_extract_mentions(self):
        self.assertEqual(extract_mentions("hey @a, @b@c"), ["a,", "b", "c"])
        self.assertEqual(extract_mentions("no mentions"), [])

    def test_format_system_message(self):
        session = make_session()
        session.submit("/channels")
        line = format_message(session.drain()[0])
        self.assertTrue(line.endswith("] * no channels discovered"))


class EventTests(unittest.TestCase):
    def test_log_line_round_trip(self):
        emitter = UIEventEmitter()
        emitter.emit(UIEventType.COMMAND_RECEIVED, command="/w")
        event = emitter.get_last_event()
        parsed = UIEvent.from_log_line(event.to_log_line())
        self.assertEqual(parsed.type, UIEventType.COMMAND_RECEIVED)
        self.assertEqual(parsed.data, {"command": "/w"})

    def test_parse_from_log(self):
        log = (
            "2024-01-01 10:00:00 - meshchat.ui.events - INFO - "
            'UI_EVENT|2024-01-01T10:00:00|MESSAGE_SENT|{"content": "hi"}\n'
            "unrelated line\n"
            "UI_EVENT|bad\n"
        )
        events = parse_ui_events_from_log(log)
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].data["content"], "hi")

    def test_history_keeps_most_recent_events(self):
        emitter = UIEventEmitter(max_events=3)
        for n in range(5):
            emitter.emit(UIEventType.INPUT_SUBMITTED, text=str(n))
        self.assertEqual([e.data["text"] for e in emitter.get_events()], ["2", "3", "4"])
        self.assertEqual(emitter.get_last_event(UIEventType.INPUT_SUBMITTED).data["text"], "4")
        self.assertIsNone(emitter.get_last_event(UIEventType.APP_STARTED))

    def test_logged_events_can_be_parsed_back(self):
        emitter = UIEventEmitter(log_events=True)
        with self.assertLogs("meshchat.ui.events", level="INFO") as captured:
            emitter.emit(UIEventType.MESSAGE_SENT, content="hi")
        events = parse_ui_events_from_log("\n".join(captured.output))
        self.assertEqual([e.type for e in events], [UIEventType.MESSAGE_SENT])
        self.assertEqual(events[0].data, {"content": "hi"})
