#!/usr/bin/env -S uv run
"""
Script test runner for llvmguard.

Runs every tests/test_*.py as a standalone script (each ends in an
``if __name__ == "__main__"`` block that calls its tests in order) and
summarizes the results. The same files are collected by pytest.

Set COVERAGE_RUN=1 to run each script under coverage.
"""

import os
import subprocess
import sys
from pathlib import Path

TESTS_DIR = Path("tests")


def coverage_wrap(name: str, args: list[str]) -> list[str]:
    """Wrap command with coverage if COVERAGE_RUN environment variable is set."""
    if os.environ.get("COVERAGE_RUN"):
        return ["-m", "coverage", "run", f"--data-file=.coverage.{name}"] + args
    return args


def run_python_test(script: Path) -> tuple[str, str, int]:
    """Run a Python test script and return (stdout, stderr, returncode)."""
    cmd = coverage_wrap(script.stem, [str(script)])
    result = subprocess.run(
        [sys.executable] + cmd,
        capture_output=True,
        env={**os.environ, "PYTHONPATH": str(Path.cwd())},
    )
    stdout = result.stdout.decode("utf-8", errors="replace")
    stderr = result.stderr.decode("utf-8", errors="replace")
    return stdout, stderr, result.returncode


def main():
    scripts = sorted(TESTS_DIR.glob("test_*.py"))
    if not scripts:
        print(f"No tests found in '{TESTS_DIR}'.")
        sys.exit(1)

    passed = 0
    failed = 0
    skipped = 0
    results = []

    print("=" * 60)
    print("Running Python tests")
    print("=" * 60)

    for script in scripts:
        stdout, stderr, code = run_python_test(script)
        skips = sum(1 for line in stdout.splitlines() if line.startswith("SKIP"))

        if code != 0:
            status = "FAIL"
            failed += 1
        else:
            status = "PASS"
            passed += 1
        skipped += skips
        results.append((script.stem, status, skips))

        print(f"[{status}] {script.stem}")
        if code != 0 and stderr:
            for line in stderr.splitlines()[-5:]:  # Last 5 lines of the traceback
                print(f"       {line}")

    print()
    print("=" * 60)
    print("Summary")
    print("=" * 60)
    print()
    print(f"Python tests: {passed} passed, {failed} failed out of {len(scripts)}")
    if skipped:
        print(f"Skipped checks: {skipped} (no native libLLVM found)")
    print()

    print("Python Test Results:")
    print("-" * 50)
    print(f"{'Test':<30} {'Status':<6} {'Skips'}")
    print("-" * 50)
    for name, status, skips in results:
        print(f"{name:<30} {status:<6} {skips}")

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
