"""Session context threaded through the terminal's composition root."""

from __future__ import annotations

import logging
from typing import Callable

from pos.actions import Action
from pos.data import initial_state
from pos.models import PosState
from pos.reducer import reduce

logger = logging.getLogger(__name__)

Listener = Callable[[PosState, PosState], None]


class PosSession:
    """
    Owns the current state and the dispatch loop for one terminal.

    Created at process start with the signed-in account (``None`` when
    nobody is signed in) and closed at sign-out. Actions are reduced one at a
    time, synchronously; listeners see ``(previous, current)`` after each
    dispatch that produced a different state object.
    """

    def __init__(self, account_id: str | None = None, state: PosState | None = None) -> None:
        self.account_id = account_id
        self._state = state if state is not None else initial_state()
        self._listeners: list[Listener] = []
        self._dispatching = False
        self._queue: list[Action] = []
        self.closed = False

    @property
    def state(self) -> PosState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> PosState:
        """Reduce ``action``; actions dispatched from a listener run after the current one."""
        if self.closed:
            logger.warning("dispatch after close ignored action=%s", type(action).__name__)
            return self._state
        self._queue.append(action)
        if self._dispatching:
            return self._state
        self._dispatching = True
        try:
            while self._queue:
                queued = self._queue.pop(0)
                previous = self._state
                self._state = reduce(previous, queued)
                logger.debug("dispatch action=%s changed=%s", type(queued).__name__, self._state is not previous)
                if self._state is previous:
                    continue
                for listener in list(self._listeners):
                    listener(previous, self._state)
        finally:
            # A raising listener abandons whatever it queued.
            self._queue.clear()
            self._dispatching = False
        return self._state

    def close(self) -> None:
        self._listeners.clear()
        self._queue.clear()
        self.closed = True
