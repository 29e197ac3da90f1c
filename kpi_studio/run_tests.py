#!/usr/bin/env python3
"""
Test runner for KPI Studio
"""

import os
import sys
import pytest

TESTS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "tests")

SUITES = {
    'basic': [
        "test_basic_functionality.py",
        "test_tools.py",
        "test_llm_manager.py",
        "test_agents.py",
        "test_main.py",
        "test_app.py",
    ],
    'database': ["test_database_manager.py"],
    'workflow': ["test_workflow.py", "test_checkpointer.py"],
    'integration': ["test_integration_postgres.py"],
}


def run_suite(name: str) -> int:
    """Run one suite of test files"""
    print(f"\n🧪 Running {name} tests...")
    print("=" * 50)
    return pytest.main(["-v"] + [os.path.join(TESTS_DIR, test_file) for test_file in SUITES[name]])


def main():
    """Main function"""
    if len(sys.argv) > 1:
        suite = sys.argv[1]
        if suite not in SUITES:
            print(f"Unknown test suite: {suite}")
            print(f"Available suites: {', '.join(SUITES)}")
            sys.exit(1)
        sys.exit(run_suite(suite))

    print("🚀 Running All Tests for KPI Studio")
    print("=" * 60)
    sys.exit(pytest.main(["-v", TESTS_DIR]))


if __name__ == "__main__":
    main()
