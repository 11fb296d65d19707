#!/usr/bin/env python3
"""
AOS Test Runner

    python tests/run_tests.py            # every test module
    python tests/run_tests.py -m test_vcs
"""

import os
import sys
import argparse
import unittest

TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.dirname(TESTS_DIR))


def build_suite(module=None) -> unittest.TestSuite:
    loader = unittest.TestLoader()
    pattern = f"{module}.py" if module else 'test_*.py'
    return loader.discover(TESTS_DIR, pattern=pattern, top_level_dir=TESTS_DIR)


def main() -> int:
    parser = argparse.ArgumentParser(description='AOS Test Runner')
    parser.add_argument('--module', '-m', help='Run one test module, e.g. test_vfs')
    parser.add_argument('--quiet', '-q', action='store_true', help='Less output')
    args = parser.parse_args()

    suite = build_suite(args.module)
    if not suite.countTestCases():
        print(f"No tests found for {args.module}", file=sys.stderr)
        return 1
    result = unittest.TextTestRunner(verbosity=1 if args.quiet else 2).run(suite)
    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(main())
