# unlockwall/__main__.py
from __future__ import annotations
import argparse
import logging
from dataclasses import replace

from .config import Settings
from .grid import Grid
from .scheduler import Scheduler
from .server import create_app
from .session import SessionController
from .store import HttpStore
from .store_server import create_app as create_store_app
from .sync import GridSync


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="unlockwall", description="Unlock wall servers")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = p.add_subparsers(dest="command", required=True)

    store = sub.add_parser("store", help="run the shared key-value store")
    store.add_argument("-H", "--host", default="0.0.0.0")
    store.add_argument("-p", "--port", type=int, default=5001)

    wall = sub.add_parser("wall", help="run the wall and its memory game")
    wall.add_argument("-H", "--host", default="127.0.0.1")
    wall.add_argument("-p", "--port", type=int, default=5000)
    wall.add_argument("--store-url", default=None, help="overrides UNLOCKWALL_STORE_URL")
    return p.parse_args(argv)


def build_controller(settings: Settings) -> SessionController:
    grid = Grid(settings.grid_size)
    store = HttpStore(settings.store_url, poll_seconds=settings.poll_seconds)
    sync = GridSync(store, grid, settings.namespace)
    sync.start()
    return SessionController(grid, sync, Scheduler(), settings)


def main(argv=None):
    a = parse_args(argv)
    logging.basicConfig(level=a.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if a.command == "store":
        create_store_app().run(host=a.host, port=a.port)
        return

    settings = Settings.from_env()
    if a.store_url:
        settings = replace(settings, store_url=a.store_url)
    create_app(build_controller(settings)).run(host=a.host, port=a.port, threaded=True)


if __name__ == "__main__":
    main()
