"""
BeeMiner Backend Test Suite

Tests for the economy catalog, roulette selection, economy engine,
state stores, notifications and the HTTP API.

Author: jetgause
Created: 2026-10-18
"""

import sys
import os
from pathlib import Path

# Add parent directory to path for imports
test_dir = Path(__file__).parent
project_root = test_dir.parent
sys.path.insert(0, str(project_root))

__version__ = "1.0.0"
__all__ = []
