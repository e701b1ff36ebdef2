#!/usr/bin/env python3
"""CLI entry point for substore-deploy.

Collects the deployment settings (answers file, then prompts), confirms
them, and runs the deploy scenario on this host:

    substore-deploy
    substore-deploy --config deploy.yaml --yes
    substore-deploy --dry-run
    substore-deploy --preflight
"""

import argparse
import contextlib
import json
import logging
import socket
import subprocess
import sys
from pathlib import Path

from config import DEFAULT_PORT, ConfigError, get_answers_path, load_answers
from prompts import collect_config
from scenarios import Orchestrator
from scenarios.deploy import SubStoreDeploy, format_summary
from validation import format_preflight_results, run_preflight_checks

DEFAULT_REPORT_DIR = Path('/var/log/substore-deploy')

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def get_version():
    """Get version from git tags, falling back to 'dev'."""
    try:
        result = subprocess.run(
            ['git', 'describe', '--tags', '--abbrev=0'],
            capture_output=True, text=True,
            cwd=Path(__file__).parent,
            check=False,
        )
        return result.stdout.strip() if result.returncode == 0 else 'dev'
    except OSError:
        return 'dev'


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='substore-deploy',
        description='Deploy Sub-Store behind nginx with a Let\'s Encrypt certificate'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'substore-deploy {get_version()}'
    )
    parser.add_argument(
        '--config', '-c',
        type=Path,
        help='YAML answers file (domain, port, api_path, email, issue_certificate, strict). '
             'Defaults to $SUBSTORE_DEPLOY_CONFIG'
    )
    parser.add_argument(
        '--yes', '-y',
        action='store_true',
        help='Skip the configuration confirmation prompt'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Abort on package, service, firewall or nginx failures instead of warning'
    )
    parser.add_argument(
        '--skip', '-s',
        action='append',
        default=[],
        help='Phases to skip (can be repeated)'
    )
    parser.add_argument(
        '--list-phases',
        action='store_true',
        help='List deployment phases and exit'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be executed without running actions'
    )
    parser.add_argument(
        '--preflight',
        action='store_true',
        help='Run preflight checks only (no deployment)'
    )
    parser.add_argument(
        '--report-dir', '-r',
        type=Path,
        default=DEFAULT_REPORT_DIR,
        help=f'Directory for run reports (default: {DEFAULT_REPORT_DIR})'
    )
    parser.add_argument(
        '--json-output',
        action='store_true',
        help='Output structured JSON to stdout (logs go to stderr)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )
    return parser


def _redirect_logging_to_stderr():
    """Send log records to stderr so stdout carries only JSON."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(stderr_handler)


def _handle_results(args, orchestrator, success: bool) -> int:
    """Print the summary or JSON report and return the exit code."""
    if args.json_output:
        report_data = orchestrator.report.to_dict(orchestrator.context)
        print(json.dumps(report_data, indent=2))
    elif success:
        print(format_summary(orchestrator.config))

    for warning in orchestrator.report.warnings:
        logger.warning(f"{warning.name}: {warning.message}")

    return 0 if success else 1


def run(args) -> int:
    """Run the CLI with parsed arguments."""
    scenario = SubStoreDeploy()
    phase_names = [name for name, _action, _desc in scenario.get_phases()]

    if args.list_phases:
        print(f"Phases for '{scenario.name}':")
        for name, _action, desc in scenario.get_phases():
            print(f"  {name}: {desc}")
        return 0

    unknown = [name for name in args.skip if name not in phase_names]
    if unknown:
        print(f"Error: Unknown phase(s): {', '.join(unknown)}")
        print(f"Available phases: {', '.join(phase_names)}")
        return 1

    try:
        answers_path = get_answers_path(args.config)
        answers = load_answers(answers_path) if answers_path else {}
    except ConfigError as e:
        print(f"Error: {e}")
        return 1
    if answers_path:
        logger.info(f"Loaded answers from {answers_path}: {sorted(answers)}")

    if args.preflight:
        hostname = socket.gethostname()
        logger.info(f"Running preflight checks for {hostname}")
        success, results = run_preflight_checks(
            domain=answers.get('domain'),
            port=answers.get('port', DEFAULT_PORT)
        )
        print(format_preflight_results(hostname, results))
        return 0 if success else 1

    overrides = {'strict': True} if args.strict else {}
    # Keep stdout for the JSON report
    echo = sys.stderr if args.json_output else sys.stdout
    try:
        with contextlib.redirect_stdout(echo):
            config = collect_config(answers, assume_yes=args.yes, **overrides)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    if config is None:
        logger.warning("Deployment cancelled by user")
        return 0

    orchestrator = Orchestrator(
        scenario=scenario,
        config=config,
        report_dir=args.report_dir,
        skip_phases=args.skip,
        dry_run=args.dry_run
    )
    if 'issue_certificate' in answers:
        orchestrator.context['issue_certificate'] = answers['issue_certificate']
        orchestrator.context['email'] = config.email

    with contextlib.redirect_stdout(echo):
        success = orchestrator.run()
    if args.dry_run:
        return 0
    return _handle_results(args, orchestrator, success)


def main(argv=None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.json_output:
        _redirect_logging_to_stderr()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        return run(args)
    except KeyboardInterrupt:
        print("\nAborted.")
        return 130
    except EOFError:
        print("\nError: input closed before configuration was complete")
        return 1


if __name__ == '__main__':
    sys.exit(main())
