"""
Mood classification.

The mood is a coarse expressive tag derived from the most recent impulse.
It can change at most once per cooldown window; inside the window the
current mood is returned unchanged.
"""

import logging
from enum import Enum
from typing import Optional

log = logging.getLogger(__name__)


class Mood(str, Enum):
    CALM = "calm"
    MYSTERY = "mystery"
    JOY = "joy"
    TENSION = "tension"
    EXPANSION = "expansion"


def classify(frequency: float, velocity: int) -> Mood:
    """Ordered rules, first match wins."""
    if frequency < 170 and velocity < 60:
        return Mood.CALM
    if frequency < 250 and velocity > 85:
        return Mood.MYSTERY
    if frequency > 650 and velocity > 95:
        return Mood.JOY
    if velocity > 112:
        return Mood.TENSION
    return Mood.EXPANSION


class MoodClassifier:
    """Hysteretic mood state: current value plus the time it last changed."""

    def __init__(self, cooldown: float = 0.85, initial: Mood = Mood.CALM):
        self.cooldown = cooldown
        self.current = initial
        self.last_change: Optional[float] = None

    def gated(self, now: float) -> bool:
        return self.last_change is not None and now - self.last_change < self.cooldown

    def update(self, frequency: float, velocity: int, now: float) -> Mood:
        if self.gated(now):
            return self.current
        mood = classify(frequency, velocity)
        if mood is not self.current:
            log.debug("mood %s -> %s", self.current.value, mood.value)
        self.current = mood
        self.last_change = now
        return mood

    def force(self, mood: Mood, now: Optional[float] = None) -> None:
        """Set the mood directly (used for scripted scenes and tests)."""
        self.current = mood
        self.last_change = now
