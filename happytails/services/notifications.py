# happytails/services/notifications.py
import time
from dataclasses import dataclass
from typing import Callable, Literal

NoticeLevel = Literal["success", "error", "info"]

# Transient notices disappear after this many seconds
NOTICE_TTL_SECONDS = 3.0


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str
    created_at: float


class NoticeBoard:
    """
    Toast-style transient messages.

    Validation failures and payment outcomes are reported here instead of
    being raised to the caller. Notices expire NOTICE_TTL_SECONDS after
    they are posted; `history` keeps everything for inspection.
    """

    def __init__(
        self,
        ttl: float = NOTICE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self.history: list[Notice] = []

    def post(self, level: NoticeLevel, message: str) -> Notice:
        notice = Notice(level=level, message=message, created_at=self._clock())
        self.history.append(notice)
        return notice

    def success(self, message: str) -> Notice:
        return self.post("success", message)

    def error(self, message: str) -> Notice:
        return self.post("error", message)

    def info(self, message: str) -> Notice:
        return self.post("info", message)

    def active(self) -> list[Notice]:
        now = self._clock()
        return [n for n in self.history if now - n.created_at < self.ttl]

    @property
    def last(self) -> Notice | None:
        return self.history[-1] if self.history else None

    def messages(self, level: NoticeLevel | None = None) -> list[str]:
        return [n.message for n in self.history if level is None or n.level == level]
