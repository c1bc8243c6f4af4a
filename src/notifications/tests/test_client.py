import json

from src.notifications.client import NotificationClient


class FakeSocket:
    def __init__(self, frames=()):
        self.frames = list(frames)
        self.sent = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def __iter__(self):
        return iter(self.frames)

    def send(self, data):
        self.sent.append(data)

    def close(self):
        self.closed = True


class FakeConnector:
    """Plays back a script of sockets; an exception in the script is raised instead."""

    def __init__(self, *script):
        self.script = list(script)
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        outcome = self.script.pop(0) if self.script else OSError("refused")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_client(connector, **kwargs):
    kwargs.setdefault("reconnect_interval", 0)
    return NotificationClient("ws://travel.test/ws/", user_id=7, token="abc",
                              connect_factory=connector, **kwargs)


class TestNotificationClient:
    def test_endpoint_and_origin(self):
        client = make_client(FakeConnector())
        assert client.endpoint == "ws://travel.test/ws/?userID=7&token=abc"
        assert client.origin == "http://travel.test"
        assert NotificationClient("wss://travel.test/ws/", user_id=1).origin == "https://travel.test"

    def test_gives_up_after_max_attempts(self):
        connector = FakeConnector()
        client = make_client(connector, max_reconnect_attempts=3)
        client.run()
        assert len(connector.calls) == 4
        assert client.reconnect_attempts == 3
        url, kwargs = connector.calls[0]
        assert url == client.endpoint
        assert kwargs["origin"] == "http://travel.test"

    def test_successful_connect_resets_attempts(self):
        connector = FakeConnector(OSError("down"), FakeSocket())
        client = make_client(connector, max_reconnect_attempts=2)
        client.run()
        # fail, connect (counter back to zero), then two more failures
        assert len(connector.calls) == 4

    def test_no_reconnect_when_disabled(self):
        connector = FakeConnector()
        client = make_client(connector, auto_reconnect=False)
        client.run()
        assert len(connector.calls) == 1

    def test_queued_messages_flush_on_connect(self):
        socket = FakeSocket()
        client = make_client(FakeConnector(socket), auto_reconnect=False)
        assert client.send({"type": "mark_read", "id": 3}) is False
        assert client.ping() is False
        client.run()
        assert [json.loads(s) for s in socket.sent] == [{"type": "mark_read", "id": 3}, {"type": "ping"}]
        assert client.connected.is_set() is False

    def test_listeners_receive_decoded_frames(self):
        frames = ['{"type": "pong"}', "not json", '{"type": "unread_count", "data": {"count": 2}}']
        client = make_client(FakeConnector(FakeSocket(frames)), auto_reconnect=False)
        seen = []
        client.add_listener(seen.append)
        client.run()
        assert [m["type"] for m in seen] == ["pong", "unread_count"]

    def test_failing_listener_does_not_block_others(self):
        client = make_client(FakeConnector(FakeSocket(['{"type": "info"}'])), auto_reconnect=False)
        seen = []

        def broken(message):
            raise RuntimeError("boom")

        client.add_listener(broken)
        client.add_listener(seen.append)
        client.run()
        assert seen == [{"type": "info"}]

    def test_remove_listener(self):
        client = make_client(FakeConnector(FakeSocket(['{"type": "info"}'])), auto_reconnect=False)
        seen = []
        unsubscribe = client.add_listener(seen.append)
        unsubscribe()
        client.remove_listener(seen.append)
        client.run()
        assert seen == []

    def test_stop_before_reconnect(self):
        connector = FakeConnector(FakeSocket(['{"type": "pong"}']))
        client = make_client(connector)
        client.add_listener(lambda message: client.stop())
        client.run()
        assert len(connector.calls) == 1
