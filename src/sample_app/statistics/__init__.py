"""Random sources and distributions for simulated request behaviour."""

from .distributions import (
    BernoulliDistribution,
    RandomSource,
    ScriptedRandomSource,
    SystemRandomSource,
    UniformDistribution,
)

__all__ = [
    "RandomSource",
    "SystemRandomSource",
    "ScriptedRandomSource",
    "UniformDistribution",
    "BernoulliDistribution",
]
