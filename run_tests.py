#!/usr/bin/env python3
"""
Remote agent test runner

Usage:
    python run_tests.py                    # Run unit tests with coverage
    python run_tests.py --unit             # Run only unit tests
    python run_tests.py --integration      # Run ZeroMQ integration tests
    python run_tests.py --format           # Format code with Black and isort
    python run_tests.py --lint             # Run linting checks
    python run_tests.py --all              # Format, lint, unit and integration tests
"""

import argparse
import os
import subprocess
import sys

SOURCES = "shared/ agent/"
COVERAGE_TARGETS = "--cov=shared --cov=agent"


class Colors:
    """ANSI color codes for terminal output"""

    HEADER = "\033[95m"
    OKCYAN = "\033[96m"
    OKGREEN = "\033[92m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


def print_header(message):
    print(f"\n{Colors.HEADER}{Colors.BOLD}{'=' * 60}{Colors.ENDC}")
    print(f"{Colors.HEADER}{Colors.BOLD}{message.center(60)}{Colors.ENDC}")
    print(f"{Colors.HEADER}{Colors.BOLD}{'=' * 60}{Colors.ENDC}\n")


def print_success(message):
    print(f"{Colors.OKGREEN}✓ {message}{Colors.ENDC}")


def print_error(message):
    print(f"{Colors.FAIL}✗ {message}{Colors.ENDC}")


def print_warning(message):
    print(f"{Colors.WARNING}⚠ {message}{Colors.ENDC}")


def run_command(command, description):
    """
    Run a shell command, streaming its output.

    Returns:
        True if command succeeded, False otherwise
    """
    print(f"{Colors.OKCYAN}Running: {description}{Colors.ENDC}")
    try:
        subprocess.run(command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print_error(f"{description} failed with exit code {e.returncode}")
        return False
    print_success(f"{description} completed successfully")
    return True


def install_test_dependencies():
    print_header("Installing Test Dependencies")
    return run_command('pip install -e ".[test,dev]"', "Installing package with test extras")


def run_unit_tests(coverage=True):
    print_header("Running Unit Tests")
    if coverage:
        command = f"pytest tests/unit/ -v {COVERAGE_TARGETS} --cov-report=term-missing"
        return run_command(command, "Unit tests with coverage")
    return run_command("pytest tests/unit/ -v", "Unit tests without coverage")


def run_integration_tests():
    print_header("Running Integration Tests")
    if not os.path.exists("tests/integration"):
        print_warning("No integration tests found, skipping...")
        return True
    return run_command("pytest tests/integration/ -v --tb=short", "Integration tests")


def format_code():
    print_header("Formatting Code")
    black_success = run_command(f"black --line-length 100 {SOURCES} tests/", "Formatting with Black")
    isort_success = run_command(
        f"isort --profile black --line-length 100 {SOURCES} tests/", "Sorting imports with isort"
    )
    return black_success and isort_success


def run_linting():
    print_header("Running Linting")
    return run_command(
        f"flake8 --max-line-length=100 --ignore=E203,W503,E501 {SOURCES}", "Linting with flake8"
    )


def check_coverage():
    print_header("Checking Coverage Requirements")
    success = run_command("coverage report --fail-under=80", "Checking 80% coverage requirement")
    if not success:
        print_warning("Consider adding more tests to improve coverage")
    return success


def main():
    parser = argparse.ArgumentParser(description="Remote agent test runner")
    parser.add_argument("--unit", action="store_true", help="Run only unit tests")
    parser.add_argument("--integration", action="store_true", help="Run only integration tests")
    parser.add_argument("--format", action="store_true", help="Format code with Black and isort")
    parser.add_argument("--lint", action="store_true", help="Run linting checks")
    parser.add_argument("--install-deps", action="store_true", help="Install test dependencies")
    parser.add_argument("--coverage", action="store_true", help="Check coverage requirements")
    parser.add_argument("--all", action="store_true", help="Run tests, format, and lint")
    parser.add_argument("--no-coverage", action="store_true", help="Run tests without coverage")
    args = parser.parse_args()

    overall_success = True

    if args.install_deps:
        overall_success &= install_test_dependencies()
    if args.format:
        overall_success &= format_code()
    if args.lint:
        overall_success &= run_linting()
    if args.unit:
        overall_success &= run_unit_tests(coverage=not args.no_coverage)
    if args.integration:
        overall_success &= run_integration_tests()
    if args.coverage:
        overall_success &= check_coverage()

    if args.all:
        overall_success &= format_code()
        overall_success &= run_linting()
        overall_success &= run_unit_tests(coverage=not args.no_coverage)
        overall_success &= run_integration_tests()

    selected = [
        args.unit,
        args.integration,
        args.format,
        args.lint,
        args.install_deps,
        args.coverage,
        args.all,
    ]
    if not any(selected):
        overall_success &= run_unit_tests(coverage=not args.no_coverage)
        if not args.no_coverage:
            overall_success &= check_coverage()

    print_header("Test Runner Summary")
    if overall_success:
        print_success("All operations completed successfully")
        sys.exit(0)
    print_error("Some operations failed. Please check the output above.")
    sys.exit(1)


if __name__ == "__main__":
    main()
