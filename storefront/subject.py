"""
Push-based state streams

A Subject holds the last emitted value, replays it to each new subscriber and
then delivers every later emission in order.
"""
import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    def __init__(self, subject: "Subject", callback: Callable):
        self._subject = subject
        self._callback = callback
        self.closed = False

    def unsubscribe(self) -> None:
        if not self.closed:
            self._subject._remove(self._callback)
            self.closed = True


class Subject(Generic[T]):
    def __init__(self, initial: T):
        self._value = initial
        self._observers: List[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        self._observers.append(callback)
        callback(self._value)
        return Subscription(self, callback)

    def next(self, value: T) -> None:
        self._value = value
        # copy so observers may unsubscribe while being notified
        for callback in list(self._observers):
            callback(value)

    def _remove(self, callback) -> None:
        try:
            self._observers.remove(callback)
        except ValueError:
            logger.debug("Observer already removed")

    @property
    def observer_count(self) -> int:
        return len(self._observers)
