import threading

import pytest
import requests

from unlockwall.errors import SubscriptionError
from unlockwall.grid import Grid
from unlockwall.store import HttpStore
from unlockwall.store_server import create_app
from unlockwall.sync import GridSync

BASE = "http://store.test"


class FakeResponse:
    def __init__(self, response):
        self.status_code = response.status_code
        self._json = response.get_json()

    def json(self):
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FlaskSession:
    """Routes requests-style calls into a Flask test client."""

    def __init__(self, app):
        self.client = app.test_client()
        self.down = False

    def _path(self, url):
        assert url.startswith(BASE)
        if self.down:
            raise requests.ConnectionError("store unreachable")
        return url[len(BASE):]

    def get(self, url, timeout=None):
        return FakeResponse(self.client.get(self._path(url)))

    def post(self, url, json=None, timeout=None):
        return FakeResponse(self.client.post(self._path(url), json=json))


@pytest.fixture
def http():
    return FlaskSession(create_app())


@pytest.fixture
def store(http):
    return HttpStore(BASE, poll_seconds=0.01, session=http, autostart=False)


def test_write_and_read(store):
    store.write("logos/42", "data:x")
    assert store.read("logos/42") == "data:x"
    assert store.read("logos/43") is None


def test_subscription_delivers_each_version_once(store):
    seen = []
    sub = store.subscribe("logos", seen.append, pytest.fail)
    assert sub.poll_once() is True
    assert seen == [{}]
    assert sub.poll_once() is False
    store.write("logos/1", "one")
    assert sub.poll_once() is True
    assert seen[-1] == {"1": "one"}


def test_subscription_survives_outage(store, http):
    errors, seen = [], []
    sub = store.subscribe("logos", seen.append, errors.append)
    http.down = True
    assert sub.poll_once() is False
    assert isinstance(errors[0], SubscriptionError)
    assert sub.connected is False
    http.down = False
    assert sub.poll_once() is True
    assert sub.connected is True


def test_write_failure_raises_oserror(store, http):
    http.down = True
    with pytest.raises(OSError):
        store.write("logos/1", "x")


def test_round_trip_index_42_through_http(store):
    data = "data:image/png;base64," + "iVBORw0KGgo=" * 20
    writer = GridSync(store, Grid(100))
    writer.persist(42, data)

    reader_grid = Grid(100)
    reader = GridSync(store, reader_grid)
    reader.start()
    reader.subscription.poll_once()
    assert reader_grid.cell(42).image_data == data


def test_cancel_is_idempotent(store):
    sub = store.subscribe("logos", lambda values: None, lambda e: None)
    sub.cancel()
    sub.cancel()
    assert sub.cancelled


class CannedSession:
    """Answers every snapshot request with the next payload in line."""

    def __init__(self, payloads):
        self.payloads = list(payloads)
        self.calls = 0

    def get(self, url, timeout=None):
        self.calls += 1
        payload = self.payloads[min(self.calls, len(self.payloads)) - 1]
        return FakeJson(payload)


class FakeJson:
    status_code = 200

    def __init__(self, payload):
        self.payload = payload

    def json(self):
        return self.payload

    def raise_for_status(self):
        pass


@pytest.mark.parametrize("payload", [{"status": "ok"}, {"version": "x", "values": {}},
                                     {"version": 1, "values": None}, ["nope"]])
def test_malformed_snapshot_reported(payload):
    errors, seen = [], []
    store = HttpStore(BASE, session=CannedSession([payload]), autostart=False)
    sub = store.subscribe("logos", seen.append, errors.append)
    assert sub.poll_once() is False
    assert isinstance(errors[0], SubscriptionError)
    assert seen == []
    assert sub.connected is True


def test_polling_thread_survives_bad_payload():
    good = {"version": 2, "values": {"4": "data:four"}}
    http = CannedSession([{"status": "ok"}, {"status": "ok"}, good])
    grid = Grid(10)
    delivered = threading.Event()
    errors = []

    def on_change(values):
        grid.apply(4, values["4"])
        delivered.set()

    store = HttpStore(BASE, poll_seconds=0.01, session=http)
    sub = store.subscribe("logos", on_change, errors.append)
    try:
        assert delivered.wait(2.0)
        assert sub._thread.is_alive()
    finally:
        sub.cancel()
        sub._thread.join(1.0)
    assert len(errors) >= 2
    assert grid.cell(4).image_data == "data:four"


def test_failing_on_change_is_retried():
    http = CannedSession([{"version": 1, "values": {"1": "one"}}])
    calls, errors = [], []
    delivered = threading.Event()

    def on_change(values):
        calls.append(values)
        if len(calls) == 1:
            raise RuntimeError("grid not ready")
        delivered.set()

    store = HttpStore(BASE, poll_seconds=0.01, session=http)
    sub = store.subscribe("logos", on_change, errors.append)
    try:
        assert delivered.wait(2.0)
        assert sub._thread.is_alive()
    finally:
        sub.cancel()
        sub._thread.join(1.0)
    assert isinstance(errors[0], SubscriptionError)
    assert sub.version == 1
