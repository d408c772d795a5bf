"""Interval re-poll of online users for the admin screens."""
from __future__ import annotations

import threading
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from emlak_office.core.logging_config import get_logger
from emlak_office.core.models import User
from emlak_office.core.utils import utcnow

if TYPE_CHECKING:
    from emlak_office.services.users import UserService

LOGGER = get_logger(__name__)

JOB_ID = "online_users_poll"


class PresencePoller:
    """
    Keep a fresh snapshot of online users.

    Owned by one session; ``start`` schedules ``poll_once`` on an interval
    and ``stop`` shuts the scheduler down.
    """

    def __init__(self, user_service: "UserService", interval_seconds: int = 30):
        """
        Initialize the poller.

        Args:
            user_service: Source of the online-users list.
            interval_seconds: Seconds between polls.
        """
        self.user_service = user_service
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[BackgroundScheduler] = None
        self._lock = threading.Lock()
        self._online: List[User] = []
        self.last_polled_at: Optional[datetime] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def online_users(self) -> List[User]:
        with self._lock:
            return list(self._online)

    def poll_once(self) -> List[User]:
        """Fetch online users and store the snapshot."""
        users = self.user_service.get_online_users()
        with self._lock:
            self._online = users
            self.last_polled_at = utcnow()
        LOGGER.debug(f"{len(users)} users online")
        return users

    def _run_poll(self) -> None:
        try:
            self.poll_once()
        except Exception as e:
            LOGGER.error(f"Online users poll failed: {e}")

    def start(self, poll_immediately: bool = True) -> BackgroundScheduler:
        """
        Start the background scheduler.

        Returns:
            The running BackgroundScheduler instance.
        """
        if self.running:
            LOGGER.warning("Presence poller is already running")
            return self._scheduler

        if poll_immediately:
            self._run_poll()

        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self._run_poll,
            IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            replace_existing=True,
            name="Online Users Poll",
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        LOGGER.info(f"Presence poller started (every {self.interval_seconds}s)")
        return self._scheduler

    def stop(self) -> None:
        """Stop the background scheduler."""
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        LOGGER.info("Presence poller stopped")


__all__ = ["JOB_ID", "PresencePoller"]
