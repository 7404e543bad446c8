#!/usr/bin/env python3
"""Test runner for git-autosquash."""

import sys
import os
import subprocess


def run_pytest(extra_args=None):
    """Run the test suite with pytest."""
    print("Running tests with pytest...")
    result = subprocess.run([
        sys.executable, "-m", "pytest",
        "tests/",
        "-v",
        "--tb=short",
    ] + (extra_args or []), cwd=os.path.dirname(os.path.abspath(__file__)))

    return result.returncode == 0


def run_coverage():
    """Run tests with coverage reporting (needs the ``test`` extra)."""
    print("\nRunning tests with coverage...")
    success = run_pytest([
        "--cov=git_autosquash",
        "--cov-report=term-missing",
        "--cov-report=html:htmlcov",
    ])
    if success:
        print("\nCoverage report generated in htmlcov/")
    return success


if __name__ == "__main__":
    print("git-autosquash - Test Runner")
    print("=" * 40)

    if len(sys.argv) > 1 and sys.argv[1] == "--coverage":
        success = run_coverage()
    else:
        success = run_pytest(sys.argv[1:])

    print(f"\n{'='*40}")
    if success:
        print("✓ All tests passed!")
    else:
        print("✗ Some tests failed!")

    sys.exit(0 if success else 1)
