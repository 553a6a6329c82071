import threading
from typing import Callable, Dict


class QuestionTimers:
    """One auto-advance timer per room.

    Scheduling a room again replaces its timer and ``cancel`` drops it; a
    worker whose token is no longer current wakes up and does nothing.
    Disabled timers make ``schedule`` a no-op.
    """

    def __init__(self, socketio, app=None, enabled: bool = False):
        self.socketio = socketio
        self.app = app
        self.enabled = enabled
        self._lock = threading.Lock()
        self._tokens: Dict[str, object] = {}

    def schedule(self, room_id: str, question_index: int, seconds: int,
                 callback: Callable[[str, int], None]) -> bool:
        if not self.enabled or not seconds or seconds <= 0:
            return False
        token = object()
        with self._lock:
            self._tokens[room_id] = token
        self._log(f"[timer-set] room={room_id} question={question_index} duration={seconds}s")
        self.socketio.start_background_task(
            self._worker, room_id, question_index, seconds, token, callback
        )
        return True

    def cancel(self, room_id: str) -> None:
        with self._lock:
            self._tokens.pop(room_id, None)

    def is_scheduled(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._tokens

    def _worker(self, room_id, question_index, seconds, token, callback):
        self.socketio.sleep(seconds)
        with self._lock:
            if self._tokens.get(room_id) is not token:
                return
            del self._tokens[room_id]
        self._log(f"[timer-fire] room={room_id} question={question_index}")
        if self.app is not None:
            with self.app.app_context():
                callback(room_id, question_index)
        else:
            callback(room_id, question_index)

    def _log(self, message: str) -> None:
        if self.app is not None:
            self.app.logger.info(message)
