from __future__ import annotations

import json
import unittest
from datetime import datetime
from typing import Any

from email_relay.adapters.consumer_handler import handle_batch, handle_message


def make_record(value: Any, *, offset: int, topic: str = "send-email") -> dict[str, Any]:
    return {
        "topic": topic,
        "partition": 0,
        "offset": offset,
        "value": value,
    }


def make_payload(**overrides: Any) -> bytes:
    base: dict[str, Any] = {
        "to": "a@b.com",
        "subject": "S",
        "text": "T",
        "type": "welcome",
    }
    return json.dumps(base | overrides).encode("utf-8")


class Recorder:
    def __init__(self, *, send_result: bool = True, publish_result: bool = True) -> None:
        self.send_result = send_result
        self.publish_result = publish_result
        self.sent: list[tuple[str, str, str | None, str | None]] = []
        self.published: list[dict[str, Any]] = []

    def send_mail(
        self, to: str, subject: str, text: str | None = None, html: str | None = None
    ) -> bool:
        self.sent.append((to, subject, text, html))
        return self.send_result

    def publish_confirmation(self, event: dict[str, Any]) -> bool:
        self.published.append(event)
        return self.publish_result


def run(record: dict[str, Any], recorder: Recorder) -> dict[str, Any]:
    return handle_message(
        record,
        send_mail=recorder.send_mail,
        publish_confirmation=recorder.publish_confirmation,
    )


class ConsumerHandlerTests(unittest.TestCase):
    def test_handle_message_sends_and_confirms(self) -> None:
        recorder = Recorder()

        result = run(make_record(make_payload(), offset=10), recorder)

        self.assertEqual(result["status"], "sent_and_confirmed")
        self.assertTrue(result["sent"])
        self.assertTrue(result["confirmed"])
        self.assertEqual(recorder.sent, [("a@b.com", "S", "T", None)])
        self.assertEqual(len(recorder.published), 1)
        confirmation = recorder.published[0]
        self.assertEqual(confirmation["to"], "a@b.com")
        self.assertEqual(confirmation["type"], "welcome")
        self.assertIsNotNone(datetime.fromisoformat(confirmation["timestamp"]).tzinfo)

    def test_handle_message_without_type_confirms_with_none(self) -> None:
        recorder = Recorder()

        run(make_record(b'{"to":"a@b.com","subject":"S"}', offset=11), recorder)

        self.assertIsNone(recorder.published[0]["type"])
        self.assertEqual(recorder.sent, [("a@b.com", "S", None, None)])

    def test_handle_message_does_not_confirm_when_send_fails(self) -> None:
        recorder = Recorder(send_result=False)

        result = run(make_record(make_payload(), offset=12), recorder)

        self.assertEqual(result["status"], "send_failed")
        self.assertFalse(result["sent"])
        self.assertEqual(recorder.published, [])

    def test_handle_message_drops_malformed_json(self) -> None:
        recorder = Recorder()

        with self.assertLogs("email_relay.adapters.consumer_handler", level="ERROR"):
            result = run(make_record(b"{not json", offset=13), recorder)

        self.assertEqual(result["status"], "decode_failed")
        self.assertIn("decode_failed", result["error"] or "")
        self.assertEqual(recorder.sent, [])
        self.assertEqual(recorder.published, [])

    def test_handle_message_drops_non_object_json(self) -> None:
        recorder = Recorder()

        with self.assertLogs("email_relay.adapters.consumer_handler", level="ERROR"):
            result = run(make_record(b'["a@b.com"]', offset=14), recorder)

        self.assertEqual(result["status"], "decode_failed")

    def test_handle_message_drops_invalid_utf8(self) -> None:
        recorder = Recorder()

        with self.assertLogs("email_relay.adapters.consumer_handler", level="ERROR"):
            result = run(make_record(b"\xff\xfe", offset=15), recorder)

        self.assertEqual(result["status"], "decode_failed")

    def test_handle_message_drops_missing_required_fields(self) -> None:
        for payload in (
            b'{"subject":"S"}',
            b'{"to":"a@b.com"}',
            b'{"to":"","subject":"S"}',
            b'{"to":"a@b.com","subject":null}',
        ):
            recorder = Recorder()
            with self.assertLogs("email_relay.adapters.consumer_handler", level="WARNING"):
                result = run(make_record(payload, offset=16), recorder)

            self.assertEqual(result["status"], "invalid_payload")
            self.assertEqual(recorder.sent, [])
            self.assertEqual(recorder.published, [])

    def test_handle_message_ignores_other_topics(self) -> None:
        recorder = Recorder()

        result = run(make_record(make_payload(), offset=17, topic="orders"), recorder)

        self.assertEqual(result["status"], "ignored_topic")
        self.assertEqual(recorder.sent, [])

    def test_handle_message_reports_confirmation_failure(self) -> None:
        recorder = Recorder(publish_result=False)

        result = run(make_record(make_payload(), offset=18), recorder)

        self.assertEqual(result["status"], "sent_confirm_failed")
        self.assertTrue(result["sent"])
        self.assertFalse(result["confirmed"])
        self.assertEqual(len(recorder.sent), 1)

    def test_handle_batch_continues_past_bad_records(self) -> None:
        recorder = Recorder()
        records = [
            make_record(b"garbage", offset=20),
            make_record(b'{"subject":"missing to"}', offset=21),
            make_record(make_payload(to="c@d.com"), offset=22),
        ]

        results = handle_batch(
            records,
            send_mail=recorder.send_mail,
            publish_confirmation=recorder.publish_confirmation,
        )

        self.assertEqual(
            [result["status"] for result in results],
            ["decode_failed", "invalid_payload", "sent_and_confirmed"],
        )
        self.assertEqual([item["to"] for item in recorder.published], ["c@d.com"])


if __name__ == "__main__":
    unittest.main()
