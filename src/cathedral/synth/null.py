"""
Silent sink.
"""

from typing import List

from ..entities import Voice


class NullSink:
    """Records voices instead of sounding them. Used headless and in tests."""

    def __init__(self):
        self.started: List[Voice] = []
        self.stopped: List[Voice] = []

    def unlock(self) -> bool:
        return True

    def start(self, voice: Voice) -> None:
        self.started.append(voice)

    def stop(self, voice: Voice) -> None:
        self.stopped.append(voice)

    @property
    def sounding(self) -> List[Voice]:
        gone = {id(v) for v in self.stopped}
        return [v for v in self.started if id(v) not in gone]

    def close(self) -> None:
        pass
