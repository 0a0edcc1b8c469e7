"""
In-process change feed for challenge participants.

Writers call notify(challenge_id) after committing a participant change;
subscribers get a bare callback and re-query. Delivery carries no payload and
no ordering guarantee beyond "something changed, fetch again".
"""
import threading
from collections import defaultdict
from typing import Callable, Dict, List

from fitlive.core.logging import get_logger

logger = get_logger(__name__, "REALTIME")

Callback = Callable[[int], None]


class ParticipantFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[int, List[Callback]] = defaultdict(list)

    def subscribe(self, challenge_id: int, callback: Callback) -> Callable[[], None]:
        """Register *callback*; returns a function that removes it again."""
        with self._lock:
            self._subscribers[challenge_id].append(callback)

        def unsubscribe():
            with self._lock:
                callbacks = self._subscribers.get(challenge_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(challenge_id, None)

        return unsubscribe

    def subscriber_count(self, challenge_id: int) -> int:
        with self._lock:
            return len(self._subscribers.get(challenge_id, []))

    def notify(self, challenge_id: int) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(challenge_id, []))

        for callback in callbacks:
            try:
                callback(challenge_id)
            except Exception:
                # A broken subscriber must not fail the write that triggered it
                logger.exception(f"Subscriber failed for challenge={challenge_id}")


participant_feed = ParticipantFeed()
