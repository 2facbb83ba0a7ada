from abc import ABC, abstractmethod


class SignalFeed(ABC):
    """One external signal source; never raises, degrades to NEUTRAL"""

    NEUTRAL = 0.0
    name = "signal"

    @abstractmethod
    async def fetch_signal(self) -> float:
        pass
