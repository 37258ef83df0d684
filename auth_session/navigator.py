import logging
from typing import Callable, List, Optional

from .routes import ROUTES

RouteListener = Callable[[str], None]


class Navigator:
    """Moves the client to a named route and notifies subscribed listeners."""

    def __init__(self, initial_route: str = ROUTES.HOME) -> None:
        self._logger = logging.getLogger("auth_session.navigator")
        self._listeners: List[RouteListener] = []
        self.current_route: str = initial_route
        self.history: List[str] = []

    def subscribe(self, listener: RouteListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: RouteListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def goto(self, route: str) -> None:
        self.current_route = route
        self.history.append(route)

        notified = 0
        for listener in list(self._listeners):
            try:
                listener(route)
                notified += 1
            except Exception as e:
                self._logger.error("navigate_listener_error route=%s error=%s", route, repr(e))
        self._logger.info("navigate route=%s listeners=%s", route, notified)

    @property
    def last_route(self) -> Optional[str]:
        return self.history[-1] if self.history else None
