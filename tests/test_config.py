import pytest

from unlockwall.__main__ import parse_args
from unlockwall.config import Settings


def test_defaults():
    s = Settings()
    assert s.grid_size == 1000
    assert s.game_seconds == 10
    assert s.mismatch_delay == 0.5
    assert s.namespace == "logos"
    assert s.allow_overwrite is False


def test_from_env(monkeypatch):
    monkeypatch.setenv("UNLOCKWALL_GRID_SIZE", "25")
    monkeypatch.setenv("UNLOCKWALL_MISMATCH_DELAY_MS", "250")
    monkeypatch.setenv("UNLOCKWALL_ALLOW_OVERWRITE", "yes")
    monkeypatch.setenv("UNLOCKWALL_STORE_URL", "http://store:5001")
    s = Settings.from_env()
    assert s.grid_size == 25
    assert s.mismatch_delay == 0.25
    assert s.allow_overwrite is True
    assert s.store_url == "http://store:5001"


@pytest.mark.parametrize("kwargs", [{"grid_size": 0}, {"game_seconds": 0}, {"namespace": "a/b"},
                                    {"thumbnail_size": 0}])
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        Settings(**kwargs)


def test_bad_env_value(monkeypatch):
    monkeypatch.setenv("UNLOCKWALL_GRID_SIZE", "lots")
    with pytest.raises(ValueError):
        Settings.from_env()


def test_cli_args():
    a = parse_args(["--log-level", "DEBUG", "wall", "-p", "8080", "--store-url", "http://s"])
    assert a.command == "wall" and a.port == 8080 and a.store_url == "http://s"
    assert parse_args(["store"]).port == 5001
