#!/usr/bin/env python3
"""Run the ChefSync diagnostics report."""

import sys
import os

# Add chefsync to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from chefsync.main import run

if __name__ == "__main__":
    run()
