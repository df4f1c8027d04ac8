# unlockwall/store.py
"""
Backing store collaborators.

Both stores speak the same interface:
  subscribe(path, on_change, on_error) -> Subscription
  write(path, value)            raises OSError (requests errors included) on failure
  read(path) -> Optional[str]

on_change always receives the full {child_key: value} snapshot under `path`,
first right after subscribing and then after every change.
"""
from __future__ import annotations
import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

import requests

from .errors import SubscriptionError

log = logging.getLogger(__name__)

OnChange = Callable[[Dict[str, str]], None]
OnError = Callable[[Exception], None]


def children(data: Dict[str, str], path: str) -> Dict[str, str]:
    prefix = path.rstrip("/") + "/"
    out = {}
    for key, value in data.items():
        if key.startswith(prefix):
            child = key[len(prefix):]
            if child and "/" not in child:
                out[child] = value
    return out


class Subscription:
    def __init__(self, on_cancel: Optional[Callable[[], None]] = None):
        self._on_cancel = on_cancel
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()


class MemoryStore:
    """In-process realtime store; every viewer sharing the instance sees every write."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._lock = threading.RLock()
        self._data: Dict[str, str] = dict(initial or {})
        self._subs: List[Tuple[str, OnChange, Subscription]] = []
        self.fail_writes = False
        self.fail_reads = False

    def read(self, path: str) -> Optional[str]:
        with self._lock:
            return self._data.get(path)

    def write(self, path: str, value: str) -> None:
        if self.fail_writes:
            raise ConnectionError("store rejected the write")
        with self._lock:
            self._data[path] = value
            listeners = [(p, cb) for p, cb, sub in self._subs if not sub.cancelled]
        for sub_path, on_change in listeners:
            if path.startswith(sub_path.rstrip("/") + "/"):
                on_change(self.snapshot(sub_path))

    def snapshot(self, path: str) -> Dict[str, str]:
        with self._lock:
            return children(self._data, path)

    def subscribe(self, path: str, on_change: OnChange, on_error: OnError) -> Subscription:
        if self.fail_reads:
            on_error(SubscriptionError(f"permission denied reading {path}"))
            return Subscription()

        sub = Subscription()
        with self._lock:
            self._subs.append((path, on_change, sub))
        on_change(self.snapshot(path))
        return sub


class PollingSubscription(Subscription):
    """Polls GET /snapshot/<path> and reports each new version."""

    def __init__(self, store: "HttpStore", path: str, on_change: OnChange, on_error: OnError):
        super().__init__(on_cancel=self._stop_thread)
        self.store = store
        self.path = path
        self.on_change = on_change
        self.on_error = on_error
        self.version: Optional[int] = None
        self.connected: Optional[bool] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name=f"poll-{self.path}", daemon=True)
        self._thread.start()

    def _stop_thread(self) -> None:
        self._stop.set()

    def _set_connected(self, connected: bool) -> None:
        if connected != self.connected:
            self.connected = connected
            if connected:
                log.info("connected to store %s", self.store.base_url)
            else:
                log.warning("lost connection to store %s", self.store.base_url)

    def poll_once(self) -> bool:
        """One round trip; True when a new snapshot was delivered."""
        try:
            version, values = self.store.fetch_snapshot(self.path)
        except SubscriptionError as e:
            self._set_connected(True)
            self.on_error(e)
            return False
        except requests.RequestException as e:
            self._set_connected(False)
            self.on_error(SubscriptionError(f"reading {self.path} failed: {e}"))
            return False
        self._set_connected(True)
        if version == self.version:
            return False
        self.on_change(values)
        # only a delivered snapshot counts; a failed one is retried next poll
        self.version = version
        return True

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as e:
                log.exception("applying snapshot of %s failed", self.path)
                self.on_error(SubscriptionError(f"applying {self.path} failed: {e}"))
            self._stop.wait(self.store.poll_seconds)


class HttpStore:
    """Client for the store server (see store_server.py)."""

    def __init__(self, base_url: str, poll_seconds: float = 1.0, timeout: float = 2.0,
                 session: Optional[requests.Session] = None, autostart: bool = True):
        self.base_url = base_url.rstrip("/")
        self.poll_seconds = poll_seconds
        self.timeout = timeout
        self.http = session or requests.Session()
        # with autostart off, subscriptions only poll when poll_once() is called
        self.autostart = autostart

    def write(self, path: str, value: str) -> None:
        r = self.http.post(f"{self.base_url}/write", json={"key": path, "value": value}, timeout=self.timeout)
        r.raise_for_status()

    def read(self, path: str) -> Optional[str]:
        r = self.http.get(f"{self.base_url}/read/{path}", timeout=self.timeout)
        if r.status_code == 404:
            return None
        r.raise_for_status()
        return r.json()["value"]

    def fetch_snapshot(self, path: str) -> Tuple[int, Dict[str, str]]:
        r = self.http.get(f"{self.base_url}/snapshot/{path}", timeout=self.timeout)
        r.raise_for_status()
        try:
            data = r.json()
            return int(data["version"]), dict(data["values"])
        except (KeyError, TypeError, ValueError) as e:
            raise SubscriptionError(f"malformed snapshot of {path}: {e!r}") from e

    def subscribe(self, path: str, on_change: OnChange, on_error: OnError) -> PollingSubscription:
        sub = PollingSubscription(self, path, on_change, on_error)
        if self.autostart:
            sub.start()
        return sub
