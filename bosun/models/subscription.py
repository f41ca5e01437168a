from typing import Callable
import asyncio


class Subscription:
    """
    Interest in engine monitor snapshots. Snapshots arrive on [queue]
    until :meth:`unsubscribe` is called, calling it again is harmless.
    """

    def __init__(self, queue: asyncio.Queue, on_unsubscribe: Callable[[], None]):
        self.queue = queue
        self.active = True
        self._on_unsubscribe = on_unsubscribe

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._on_unsubscribe()
