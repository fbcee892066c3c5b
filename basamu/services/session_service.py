"""
Session context: one holder for the current session with an explicit
subscribe/unsubscribe lifecycle. Views read the snapshot when they mount
and again whenever they are notified of a change.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    user_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    access_token: Optional[str] = None


SessionListener = Callable[[Optional[Session]], None]


class SessionContext:

    def __init__(self, session: Optional[Session] = None):
        self._session = session
        self._listeners: List[SessionListener] = []

    def current(self) -> Optional[Session]:
        return self._session

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener for session changes.

        Returns:
            Callable that removes the listener. Calling it twice is harmless.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def replace(self, session: Optional[Session]) -> None:
        self._session = session
        self._notify()

    def sign_out(self) -> None:
        if self._session is not None:
            logger.info(f"Signing out user {self._session.user_id}")
        self.replace(None)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._session)
