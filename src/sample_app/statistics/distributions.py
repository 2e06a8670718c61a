"""
Random sources and distributions for simulated request behaviour.

Every random draw made by the handlers and the work simulator goes through a
RandomSource, so tests can replace the pseudo-random generator with a scripted
sequence instead of relying on statistical assertions alone.
"""

import random
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field


class RandomSource(ABC):
    """Capability that hands out uniform draws."""

    @abstractmethod
    def next_float(self) -> float:
        """Return a float in [0.0, 1.0)."""

    def next_int(self, n: int) -> int:
        """Return an int in [0, n)."""
        if n <= 0:
            raise ValueError("n must be positive")
        return min(int(self.next_float() * n), n - 1)

    def next_duration_ms(self, upper_ms: int) -> int:
        """Return a whole number of milliseconds in [0, upper_ms)."""
        return self.next_int(upper_ms)


class SystemRandomSource(RandomSource):
    """RandomSource backed by a random.Random instance (optionally seeded)."""

    def __init__(self, seed: int | None = None):
        self._random = random.Random(seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_int(self, n: int) -> int:
        if n <= 0:
            raise ValueError("n must be positive")
        return self._random.randrange(n)


class ScriptedRandomSource(RandomSource):
    """
    Deterministic RandomSource replaying a fixed list of floats.

    The values are cycled, so a single value makes every draw return it.
    Safe to share between request threads.
    """

    def __init__(self, values: Iterable[float]):
        self._values = [float(v) for v in values]
        if not self._values:
            raise ValueError("ScriptedRandomSource requires at least one value")
        for v in self._values:
            if not 0.0 <= v < 1.0:
                raise ValueError(f"Scripted value out of range [0, 1): {v}")
        self._index = 0
        self._lock = threading.Lock()

    def next_float(self) -> float:
        with self._lock:
            value = self._values[self._index % len(self._values)]
            self._index += 1
        return value


@dataclass
class UniformDistribution:
    """Uniform distribution over [low, high)."""

    low: float = 0.0
    high: float = 1.0
    source: RandomSource = field(default_factory=SystemRandomSource)

    def sample(self) -> float:
        return self.low + (self.high - self.low) * self.source.next_float()


@dataclass
class BernoulliDistribution:
    """
    Bernoulli distribution - single binary outcome.

    Good for: simulated failures and anomaly flags.
    """

    p: float = 0.5
    source: RandomSource = field(default_factory=SystemRandomSource)

    def __post_init__(self):
        if not 0.0 <= self.p <= 1.0:
            raise ValueError("p must be in [0, 1]")

    def sample_bool(self) -> bool:
        """Return True with probability p."""
        return self.source.next_float() < self.p
