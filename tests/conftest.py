import io
import random

import pytest
from PIL import Image

from unlockwall.config import Settings
from unlockwall.grid import Grid
from unlockwall.scheduler import ManualClock, Scheduler
from unlockwall.session import SessionController
from unlockwall.store import MemoryStore
from unlockwall.sync import GridSync


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)


@pytest.fixture
def settings():
    return Settings(grid_size=100)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def grid(settings):
    return Grid(settings.grid_size)


@pytest.fixture
def sync(store, grid, settings):
    s = GridSync(store, grid, settings.namespace)
    s.start()
    return s


@pytest.fixture
def controller(grid, sync, scheduler, settings):
    return SessionController(grid, sync, scheduler, settings, rng=random.Random(7))


def png_bytes(width=120, height=40, color=(200, 30, 30)):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def logo():
    return png_bytes()
