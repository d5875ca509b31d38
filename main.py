"""
    Main entry point for the installation readiness checker.

    Validates a host against a node profile from config.ini and optionally
    auto-fixes what it can:

        readiness-check --node AUTOMATION --auto-fix --non-interactive
"""
import argparse
import logging
import sys

from rich.console import Console

from core.config import load_config
from core.errors import ConfigError
from core.orchestrator import RunOrchestrator, build_check_specs
from core.report import write_json_report
from core.runner import CheckRunner
from helpers.unix import has_privilege
from reports.formatter import ConsoleReporter
from reports.logfile import setup_logging, write_header

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "config.ini"
DEFAULT_LOG = "diagnostics.log"


class UsageParser(argparse.ArgumentParser):
    """Usage errors and --help both exit 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        sys.stderr.write(f"{self.prog}: error: {message}\n")
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = UsageParser(
        prog="readiness-check",
        description="Check that this host meets the installation requirements of a node profile.",
        add_help=False,
    )
    parser.add_argument("-c", "--config", default=DEFAULT_CONFIG, help=f"configuration file (default: {DEFAULT_CONFIG})")
    parser.add_argument("-n", "--node", help="node type: DESIGN, AUTOMATION, API, GOVERN or DEPLOYER (default: DESIGN)")
    parser.add_argument("-l", "--log", default=DEFAULT_LOG, help=f"log file (default: {DEFAULT_LOG})")
    parser.add_argument("-v", "--verbose", action="store_true", help="show the resolved configuration and log debug detail")
    parser.add_argument("--auto-fix", action="store_true", help="attempt to fix failed checks automatically")
    parser.add_argument("--non-interactive", action="store_true", help="do not ask before applying fixes")
    parser.add_argument("--report", metavar="FILE", help="also write a JSON summary to FILE")
    parser.add_argument("-h", "--help", action="store_true", help="show this help and exit")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.help:
        parser.print_help()
        return 1

    console = Console()
    try:
        requirements = load_config(args.config, args.node)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1

    setup_logging(args.log, verbose=args.verbose)
    write_header(logger, requirements.node_type.value, args.config, args.auto_fix, args.non_interactive)

    reporter = ConsoleReporter(console=console, log_path=args.log)
    reporter.run_started(requirements, args.auto_fix, args.non_interactive)
    if args.verbose:
        reporter.show_config(requirements)
    if args.auto_fix and not has_privilege():
        reporter.notice("WARN", "Auto-fix needs root or password-less sudo; fixes will fail and be reported.")

    runner = CheckRunner(
        reporter=reporter,
        auto_fix=args.auto_fix,
        interactive=args.auto_fix and not args.non_interactive,
    )
    summary = RunOrchestrator(build_check_specs(requirements), runner, reporter).run()

    if args.report:
        path = write_json_report(summary, args.report, meta={"node_type": requirements.node_type.value, "config": args.config})
        console.print(f"JSON report: {path}")

    return summary.exit_code


if __name__ == "__main__":
    sys.exit(main())
