# unlockwall/session.py
from __future__ import annotations
import itertools
import logging
import random
from dataclasses import dataclass
from threading import RLock
from typing import Dict, List, Optional

from . import game
from .codec import make_thumbnail
from .config import Settings
from .display import overlay_view
from .errors import CellUnavailable, NoFileSelected, StaleSession, UnlockWallError
from .game import GameSession
from .grid import Grid
from .scheduler import Scheduler
from .sync import GridSync

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    kind: str  # "success" | "failure"
    message: str


class SessionController:
    """
    Runs one play cycle at a time: bind a cell, play, then upload on a win.

    Holds the only reference to the live GameSession. Every entry point pumps
    the scheduler first, so timer events that came due between requests are
    applied before the request itself.
    """

    def __init__(self, grid: Grid, sync: GridSync, scheduler: Scheduler,
                 settings: Optional[Settings] = None, rng: Optional[random.Random] = None):
        self.grid = grid
        self.sync = sync
        self.scheduler = scheduler
        self.settings = settings or Settings()
        self.rng = rng or random.Random()
        self.session: Optional[GameSession] = None
        self.pending_upload: Optional[GameSession] = None
        self._ids = itertools.count(1)
        self._notices: List[Notice] = []
        self._lock = RLock()

    def pump(self) -> int:
        with self._lock:
            return self.scheduler.run_pending()

    def begin(self, index: int, symbols: Optional[List[str]] = None) -> GameSession:
        with self._lock:
            self.scheduler.run_pending()
            if not self.grid.contains(index):
                raise CellUnavailable(f"cell {index} does not exist")
            if not self.grid.cell(index).locked and not self.settings.allow_overwrite:
                raise CellUnavailable(f"cell {index} is already unlocked")

            self._teardown()
            session = GameSession(
                session_id=next(self._ids),
                target_cell=index,
                mismatch_delay=self.settings.mismatch_delay,
                on_finish=self._on_finish,
            )
            game.deal(session, self.scheduler, seconds=self.settings.game_seconds,
                      rng=self.rng, symbols=symbols)
            self.session = session
            log.info("session %d started for cell %d", session.session_id, index)
            return session

    def _teardown(self) -> None:
        if self.session is not None:
            game.abandon(self.session)
        self.session = None
        self.pending_upload = None

    def select(self, card: int) -> Dict:
        with self._lock:
            self.scheduler.run_pending()
            if self.session is None:
                return {"status": "ignored", "card": card, "reason": "no session"}
            return game.select(self.session, card)

    def _on_finish(self, session: GameSession, won: bool) -> None:
        if won:
            self.pending_upload = session
            self._notify("success", "Game won! Upload a logo.")
        else:
            self._notify("failure", "Time's up! Game over.")

    def _notify(self, kind: str, message: str) -> None:
        self._notices.append(Notice(kind, message))

    def notices(self) -> List[Notice]:
        with self._lock:
            out, self._notices = self._notices, []
            return out

    def upload(self, session_id: int, data: Optional[bytes]) -> str:
        """
        Thumbnail `data` and persist it for the cell won by `session_id`.
        A failure leaves the upload pending so the player can try again.
        """
        with self._lock:
            pending = self.pending_upload
            if pending is None or pending.session_id != session_id:
                raise StaleSession(f"session {session_id} has no upload pending")
            index = pending.target_cell

        # decode and store round trip happen outside the lock
        try:
            if data is None:
                raise NoFileSelected()
            thumbnail = make_thumbnail(data, self.settings.thumbnail_size)
            self.sync.persist(index, thumbnail)
        except UnlockWallError as e:
            log.error("error uploading logo for cell %d: %s", index, e)
            with self._lock:
                if self.pending_upload is pending:
                    self._notify("failure", str(e))
            raise

        with self._lock:
            # a newer session may have started meanwhile; leave it alone
            if self.pending_upload is pending:
                self.pending_upload = None
                self._notify("success", "Logo uploaded successfully")
        log.info("logo uploaded for cell %d", index)
        return thumbnail

    def view(self) -> Dict:
        with self._lock:
            self.scheduler.run_pending()
            if self.session is None:
                out = {"session_id": None, "visible": False, "phase": "idle", "cards": []}
            else:
                out = overlay_view(self.session)
            out["upload_pending"] = (self.pending_upload.session_id
                                     if self.pending_upload is not None else None)
            out["notices"] = [{"kind": n.kind, "message": n.message} for n in self.notices()]
            return out
