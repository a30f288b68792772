"""
Common Value Objects

- DailyWindow: A time-of-day interval that may wrap past midnight
"""

from dataclasses import dataclass
from datetime import time

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class DailyWindow(ValueObject):
    """
    Daily opening window

    Represents the half-open interval [opening, closing) on a clock face.
    When opening is later than closing the window runs overnight, e.g.
    22:00-06:00 covers late evening and early morning. Equal bounds mean
    the window is empty (closed all day).
    """
    opening: time
    closing: time

    def __post_init__(self):
        if not isinstance(self.opening, time) or not isinstance(self.closing, time):
            raise TypeError("DailyWindow bounds must be datetime.time instances")
        if self.opening.tzinfo is not None or self.closing.tzinfo is not None:
            raise ValueError("DailyWindow bounds must be naive local times")

    @property
    def is_overnight(self) -> bool:
        return self.opening > self.closing

    @property
    def is_empty(self) -> bool:
        return self.opening == self.closing

    def contains(self, moment: time) -> bool:
        """
        Check if a local time-of-day falls inside the window

        Examples:
            - DailyWindow(09:00, 18:00).contains(18:00) -> False (closing is exclusive)
            - DailyWindow(22:00, 06:00).contains(02:00) -> True (overnight)
        """
        moment = moment.replace(tzinfo=None)
        if self.is_empty:
            return False
        if self.is_overnight:
            return moment >= self.opening or moment < self.closing
        return self.opening <= moment < self.closing

    def __str__(self):
        return f"{self.opening.strftime('%H:%M')}-{self.closing.strftime('%H:%M')}"

    def __repr__(self):
        return f"DailyWindow({self.opening}, {self.closing})"
