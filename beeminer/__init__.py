"""
BeeMiner Economy Backend
Version 1.0.0
"""

__version__ = "1.0.0"
__author__ = "jetgause"

from beeminer.economy import EconomyEngine
from beeminer.storage import InMemoryStateStore, SQLStateStore

__all__ = ["EconomyEngine", "InMemoryStateStore", "SQLStateStore"]
