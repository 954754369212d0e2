import logging
from typing import Callable, Generic, TypeVar


logger = logging.getLogger(__name__)


S = TypeVar("S")
T = TypeVar("T")

Listener = Callable[[S], None]


class Observable(Generic[T]):
    """Holds a state value and pushes every new one to its listeners."""

    def __init__(self, state: T) -> None:
        self._state = state
        self._listeners: list[Listener[T]] = []

    @property
    def state(self) -> T:
        return self._state

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, state: T) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                # Logged, never raised into the publisher.
                logger.exception("Listener %r failed", listener)
