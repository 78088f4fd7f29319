"""
Main entry point when running the robot_sim module with python -m.
"""

import sys

from .runner import main

if __name__ == "__main__":
    sys.exit(main())
