#!/usr/bin/env python3
"""
Run the ntfsreader test suite through pytest.

    python run_tests.py                  # all tests
    python run_tests.py --unit           # unit tests only
    python run_tests.py --cli            # CliRunner integration tests only
    python run_tests.py --coverage       # with a coverage report for ntfsreader
    python run_tests.py tests/test_backend.py -- -k journal
"""

import sys
import argparse
import subprocess


def build_command(args, extra):
    cmd = [sys.executable, '-m', 'pytest', '-v']

    if args.unit and not args.cli:
        cmd.extend(['-m', 'unit'])
    elif args.cli and not args.unit:
        cmd.extend(['-m', 'integration'])

    if args.coverage:
        cmd.extend(['--cov=ntfsreader', '--cov-report=term-missing'])
    if args.failfast:
        cmd.append('-x')

    cmd.extend(args.tests or ['tests'])
    cmd.extend(extra)
    return cmd


def main():
    parser = argparse.ArgumentParser(
        description='Run the ntfsreader test suite',
        epilog='Arguments after -- are passed to pytest unchanged.'
    )
    parser.add_argument('--unit', '-u', action='store_true', help='Run only unit tests')
    parser.add_argument('--cli', '-c', action='store_true', help='Run only CLI integration tests')
    parser.add_argument('--coverage', action='store_true', help='Report coverage of the ntfsreader package')
    parser.add_argument('--failfast', '-x', action='store_true', help='Stop on first failure')
    parser.add_argument('tests', nargs='*', help='Test files or directories')

    argv = sys.argv[1:]
    extra = []
    if '--' in argv:
        split = argv.index('--')
        argv, extra = argv[:split], argv[split + 1:]

    cmd = build_command(parser.parse_args(argv), extra)
    print(f"Running: {' '.join(cmd)}")

    try:
        return subprocess.run(cmd).returncode
    except KeyboardInterrupt:
        return 130


if __name__ == '__main__':
    sys.exit(main())
