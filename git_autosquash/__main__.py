#!/usr/bin/env python3
"""Main entry point for git-autosquash when run as python -m git_autosquash."""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
