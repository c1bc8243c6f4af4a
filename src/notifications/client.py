"""
Python client for the notification WebSocket.

    client = NotificationClient("ws://localhost:8000/ws/", user_id=7, token=access)
    client.add_listener(lambda msg: print(msg["type"], msg.get("title")))
    client.start()          # background thread; client.run() blocks instead
    client.send({"type": "ping"})
    ...
    client.stop()

Messages sent while disconnected are queued and flushed on the next connect.
Anything in flight when the socket drops is lost.
"""
import json
import logging
import threading
from collections import deque
from urllib.parse import urlencode, urlsplit

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect

logger = logging.getLogger(__name__)


class NotificationClient:
    def __init__(self, url, user_id, token=None, reconnect_interval=3.0, max_reconnect_attempts=5,
                 auto_reconnect=True, origin=None, open_timeout=10, connect_factory=connect):
        self.url = url
        self.user_id = user_id
        self.token = token
        self.reconnect_interval = reconnect_interval
        self.max_reconnect_attempts = max_reconnect_attempts
        self.auto_reconnect = auto_reconnect
        self.origin = origin or self._default_origin(url)
        self.open_timeout = open_timeout
        self.reconnect_attempts = 0

        self._connect = connect_factory
        self._listeners = []
        self._outbox = deque()
        self._lock = threading.Lock()
        self._ws = None
        self._thread = None
        self._stopping = threading.Event()
        self.connected = threading.Event()

    @staticmethod
    def _default_origin(url):
        parts = urlsplit(url)
        scheme = "https" if parts.scheme == "wss" else "http"
        return f"{scheme}://{parts.netloc}"

    @property
    def endpoint(self):
        params = {"userID": self.user_id}
        if self.token:
            params["token"] = self.token
        return f"{self.url}?{urlencode(params)}"

    # listeners

    def add_listener(self, callback):
        """Register `callback(message: dict)`; returns a function that unregisters it."""
        self._listeners.append(callback)
        return lambda: self.remove_listener(callback)

    def remove_listener(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _dispatch(self, raw):
        try:
            message = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring non-JSON frame: %.80r", raw)
            return
        for callback in list(self._listeners):
            try:
                callback(message)
            except Exception:
                logger.exception("Notification listener %r failed", callback)

    # outbound

    def send(self, message):
        """Send now if connected, otherwise queue until the next connect."""
        data = json.dumps(message)
        with self._lock:
            ws = self._ws
            if ws is None:
                self._outbox.append(data)
                return False
        try:
            ws.send(data)
            return True
        except ConnectionClosed:
            with self._lock:
                self._outbox.append(data)
            return False

    def ping(self):
        return self.send({"type": "ping"})

    def _flush(self, ws):
        with self._lock:
            pending = list(self._outbox)
            self._outbox.clear()
        for index, data in enumerate(pending):
            try:
                ws.send(data)
            except ConnectionClosed:
                with self._lock:
                    self._outbox.extendleft(reversed(pending[index:]))
                raise

    # connection loop

    def run(self):
        """Connect and read until stopped or out of reconnect attempts."""
        while not self._stopping.is_set():
            try:
                with self._connect(self.endpoint, origin=self.origin, open_timeout=self.open_timeout) as ws:
                    with self._lock:
                        self._ws = ws
                    self.reconnect_attempts = 0
                    self.connected.set()
                    logger.info("Notification socket connected for user %s", self.user_id)
                    self._flush(ws)
                    for raw in ws:
                        self._dispatch(raw)
            except (OSError, WebSocketException) as exc:
                logger.warning("Notification socket error: %s", exc)
            finally:
                with self._lock:
                    self._ws = None
                self.connected.clear()

            if self._stopping.is_set() or not self.auto_reconnect:
                break
            if self.reconnect_attempts >= self.max_reconnect_attempts:
                logger.error("Giving up after %d reconnect attempts", self.reconnect_attempts)
                break
            self.reconnect_attempts += 1
            logger.info(
                "Reconnecting in %.1fs (attempt %d/%d)",
                self.reconnect_interval, self.reconnect_attempts, self.max_reconnect_attempts,
            )
            self._stopping.wait(self.reconnect_interval)

    def start(self):
        if self._thread and self._thread.is_alive():
            return self._thread
        self._stopping.clear()
        self._thread = threading.Thread(target=self.run, name="notification-client", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout=5):
        self._stopping.set()
        with self._lock:
            ws = self._ws
        if ws is not None:
            ws.close()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout)
