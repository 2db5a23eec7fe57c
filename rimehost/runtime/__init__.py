"""
Runtime adapters bridging the lifecycle controller to the engine and the OS.
"""

from __future__ import annotations

from .binding import EngineBinding, EngineBindingError, EngineTraits, EngineUnavailableError
from .librime import LibrimeBinding
from .logind import PowerOffMonitor

__all__ = [
    "EngineBinding",
    "EngineBindingError",
    "EngineTraits",
    "EngineUnavailableError",
    "LibrimeBinding",
    "PowerOffMonitor",
]
