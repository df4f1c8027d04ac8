# unlockwall/errors.py
from __future__ import annotations


class UnlockWallError(Exception):
    """Base class; the message is what the player gets to see."""


class NoFileSelected(UnlockWallError):
    def __init__(self, message: str = "No file selected"):
        super().__init__(message)


class ReadError(UnlockWallError):
    def __init__(self, message: str = "Failed to read file"):
        super().__init__(message)


class DecodeError(UnlockWallError):
    def __init__(self, message: str = "Failed to load image"):
        super().__init__(message)


class PersistError(UnlockWallError):
    def __init__(self, message: str = "Failed to save logo"):
        super().__init__(message)


class SubscriptionError(UnlockWallError):
    pass


class CellUnavailable(UnlockWallError):
    pass


class StaleSession(UnlockWallError):
    pass
