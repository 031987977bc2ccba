"""
Maintenance Use Cases

Work run by background timers rather than requests.
"""

from .collect_garbage_use_case import CollectGarbageUseCase

__all__ = [
    "CollectGarbageUseCase",
]
