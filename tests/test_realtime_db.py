# tests/test_realtime_db.py

"""Tests for the Realtime Database REST client and stream helpers."""

import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from src.remote.errors import RemoteStoreError, TransientStoreError
from src.remote.realtime_db import (
    RealtimeDatabaseClient,
    StreamEvent,
    StreamEventParser,
    apply_event,
)


def _make_response(status: int, body: Any = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.text = str(body)
    return resp


def _feed_all(parser: StreamEventParser, lines: list[str]) -> list[StreamEvent]:
    events = []
    for line in lines:
        event = parser.feed(line)
        if event is not None:
            events.append(event)
    return events


class TestStreamEventParser(unittest.TestCase):
    def test_put_event(self) -> None:
        events = _feed_all(StreamEventParser(), [
            "event: put",
            'data: {"path": "/", "data": {"storeName": "Shop"}}',
            "",
        ])
        self.assertEqual(
            events, [StreamEvent("put", "/", {"storeName": "Shop"})]
        )

    def test_keep_alive_and_cancel(self) -> None:
        events = _feed_all(StreamEventParser(), [
            "event: keep-alive",
            "data: null",
            "",
            "event: cancel",
            "data: permission denied",
            "",
        ])
        self.assertEqual([e.event for e in events], ["keep-alive", "cancel"])
        self.assertEqual(events[1].data, "permission denied")

    def test_malformed_payload_ignored(self) -> None:
        events = _feed_all(StreamEventParser(), [
            "event: patch",
            "data: {not json",
            "",
        ])
        self.assertEqual(events, [StreamEvent("keep-alive")])

    def test_blank_line_without_event(self) -> None:
        self.assertIsNone(StreamEventParser().feed(""))


class TestApplyEvent(unittest.TestCase):
    def test_root_put_replaces(self) -> None:
        self.assertEqual(apply_event({"a": 1}, "/", {"b": 2}), {"b": 2})

    def test_nested_put(self) -> None:
        tree = {"products": {"p1": {"name": "A"}}}
        result = apply_event(tree, "/products/p2", {"name": "B"})
        self.assertEqual(
            result,
            {"products": {"p1": {"name": "A"}, "p2": {"name": "B"}}},
        )
        self.assertNotIn("p2", tree["products"])

    def test_put_null_deletes_and_collapses(self) -> None:
        tree = {"products": {"p1": {"name": "A"}}, "storeName": "S"}
        result = apply_event(tree, "/products/p1", None)
        self.assertEqual(result, {"storeName": "S"})

    def test_patch_merges_children(self) -> None:
        tree = {"storeName": "Old", "currency": "GHS"}
        result = apply_event(
            tree, "/", {"storeName": "New", "products/p1/price": 5}, merge=True,
        )
        self.assertEqual(result, {
            "storeName": "New",
            "currency": "GHS",
            "products": {"p1": {"price": 5}},
        })

    def test_root_put_null_is_none(self) -> None:
        self.assertIsNone(apply_event({"a": 1}, "/", None))


class TestRealtimeDatabaseClient(unittest.TestCase):
    def setUp(self) -> None:
        self.client = RealtimeDatabaseClient(
            base_url="https://demo.firebaseio.com/", auth="tok", timeout=3,
        )
        self.client.session = MagicMock()

    def test_url_format(self) -> None:
        self.assertEqual(
            self.client.url("/users/s1/"),
            "https://demo.firebaseio.com/users/s1.json?auth=tok",
        )

    def test_unconfigured_url_raises(self) -> None:
        with patch("src.remote.realtime_db.Settings.DATABASE_URL", ""):
            client = RealtimeDatabaseClient(base_url="")
        with self.assertRaises(RemoteStoreError):
            client.url("users")

    def test_get_returns_json(self) -> None:
        self.client.session.request.return_value = _make_response(
            200, {"storeName": "S"}
        )
        self.assertEqual(self.client.get("users/s1"), {"storeName": "S"})
        _, kwargs = self.client.session.request.call_args
        self.assertEqual(kwargs["timeout"], 3)

    def test_server_error_is_transient(self) -> None:
        self.client.session.request.return_value = _make_response(503)
        with self.assertRaises(TransientStoreError):
            self.client.get("users/s1")

    def test_undecodable_body_is_transient(self) -> None:
        resp = _make_response(200)
        resp.json.side_effect = ValueError("Expecting value")
        self.client.session.request.return_value = resp
        with self.assertRaises(TransientStoreError):
            self.client.get("users/s1")

    def test_permission_error_is_terminal(self) -> None:
        self.client.session.request.return_value = _make_response(401)
        with self.assertRaises(RemoteStoreError) as ctx:
            self.client.get("users/s1")
        self.assertNotIsInstance(ctx.exception, TransientStoreError)

    def test_network_error_is_transient(self) -> None:
        self.client.session.request.side_effect = ConnectionError("boom")
        with self.assertRaises(TransientStoreError):
            self.client.get("users/s1")

    def test_post_returns_generated_key(self) -> None:
        self.client.session.request.return_value = _make_response(
            200, {"name": "-Nxyz"}
        )
        self.assertEqual(self.client.post("events/s1", {"a": 1}), "-Nxyz")
        args, kwargs = self.client.session.request.call_args
        self.assertEqual(args[0], "POST")
        self.assertEqual(kwargs["json"], {"a": 1})
