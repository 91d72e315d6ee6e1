#!/usr/bin/env python3
"""
Test runner with gating mechanisms.

Runs the suite with per-test timeouts and enforces a coverage threshold.
Exits with appropriate codes for CI/CD integration.
"""

import argparse
import subprocess
import sys
import time
from pathlib import Path
from typing import List, Optional


class TestGating:
    """Test gating with timeout and coverage threshold validation."""

    def __init__(self, timeout: int = 300):
        """Initialize test gating."""
        self.timeout = timeout
        self.project_root = Path(__file__).parent.parent

    def build_command(self, test_path: Optional[str] = None,
                      coverage_threshold: Optional[int] = None) -> List[str]:
        cmd = [
            sys.executable, '-m', 'pytest',
            '--timeout', str(self.timeout),
            '--timeout-method', 'thread',
            '--cov=contextpages',
            '--cov-report=term-missing',
            '-v',
        ]
        if coverage_threshold is not None:
            cmd += ['--cov-fail-under', str(coverage_threshold)]
        cmd.append(test_path or 'contextpages/tests/')
        return cmd

    def run(self, test_path: Optional[str] = None,
            coverage_threshold: Optional[int] = None) -> int:
        """Run tests with timeout protection."""
        cmd = self.build_command(test_path, coverage_threshold)
        print(f"Running tests with timeout {self.timeout}s...")
        print(f"Command: {' '.join(cmd)}")

        start_time = time.time()
        try:
            result = subprocess.run(
                cmd,
                timeout=self.timeout + 30,  # Extra buffer
                cwd=self.project_root,
            )
        except subprocess.TimeoutExpired:
            print(f"Tests timed out after {self.timeout}s")
            return 124

        print(f"Tests completed in {time.time() - start_time:.2f}s, exit code {result.returncode}")
        return result.returncode


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run tests with gating")
    parser.add_argument(
        '--timeout',
        type=int,
        default=300,
        help='Timeout in seconds for test execution (default: 300)'
    )
    parser.add_argument(
        '--no-coverage',
        action='store_true',
        help='Skip coverage threshold check'
    )
    parser.add_argument(
        '--coverage-threshold',
        type=int,
        default=80,
        help='Coverage threshold percentage (default: 80)'
    )
    parser.add_argument(
        '--test-path',
        help='Specific test path to run'
    )

    args = parser.parse_args()

    gating = TestGating(timeout=args.timeout)
    threshold = None if args.no_coverage else args.coverage_threshold
    sys.exit(gating.run(args.test_path, threshold))


if __name__ == '__main__':
    main()
