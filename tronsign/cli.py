import argparse
import logging
import sys
from typing import List, Optional

from colorama import Fore, Style, init

from . import __version__
from .codec import decode
from .config import load_settings
from .errors import SigninError
from .reporting import ConsoleReporter, generate_json_report
from .service import build_service


def setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # basicConfig does nothing once handlers exist
    logging.getLogger().setLevel(level)
    # urllib3 is chatty at DEBUG during a 10k-probe search
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tronsign",
        description="Automated multi-account classroom check-in",
    )
    parser.add_argument("-v", "--version", action="version", version=f"tronsign {__version__}")

    conf_group = parser.add_argument_group("Configuration")
    conf_group.add_argument("--config", help="Path to YAML config (default: tronsign.yaml)")
    conf_group.add_argument("--base-url", help="Backend URL")
    conf_group.add_argument("--roster", help="YAML file with accounts and absences")
    conf_group.add_argument("--audit-log", help="JSONL audit trail path")
    conf_group.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds")
    conf_group.add_argument("--batch-size", type=int, default=None, help="Probes per code-search batch")
    conf_group.add_argument("--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    p_decode = sub.add_parser("decode", help="Decode scan text and print the fields")
    p_decode.add_argument("raw")

    p_scan = sub.add_parser("scan", help="Check in every eligible account from scan text")
    p_scan.add_argument("raw")
    p_scan.add_argument("--requester", help="Account id submitting the scan")
    p_scan.add_argument("--json-report", help="Path to JSON output")

    p_digital = sub.add_parser("digital", help="Numeric check-in; searches for the code if none given")
    p_digital.add_argument("--requester", required=True, help="Account id whose cookie lists rollcalls")
    p_digital.add_argument("--code", help="Known 4-digit code (skips the search)")
    p_digital.add_argument("--json-report", help="Path to JSON output")

    p_hist = sub.add_parser("history", help="Show scan or attempt history")
    p_hist.add_argument("kind", choices=["scan", "attempt"])
    p_hist.add_argument("--count", type=int, default=10)
    p_hist.add_argument("--index", type=int, default=0)
    p_hist.add_argument("--user")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    init(autoreset=True)
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    reporter = ConsoleReporter()

    if args.command == "decode":
        reporter.print_payload(decode(args.raw))
        return 0

    try:
        settings = load_settings(
            args.config,
            base_url=args.base_url,
            roster=args.roster,
            audit_log=args.audit_log,
            timeout_sec=args.timeout,
            batch_size=args.batch_size,
            verbose=args.verbose or None,
        )
        # verbose may come from the config file or TRONSIGN_VERBOSE
        setup_logging(settings.verbose)
        service = build_service(settings)
    except (OSError, ValueError) as e:
        print(f"{Fore.RED}[!!!] FATAL: {e}{Style.RESET_ALL}")
        return 1

    print(f"[*] Backend: {settings.base_url}")

    try:
        if args.command == "scan":
            report = service.dispatch_scan(args.raw, args.requester)
            reporter.print_scan(report)
        elif args.command == "digital":
            if not args.code:
                print(f"{Fore.YELLOW}[*] No code given; searching 0000-9999 (batch {settings.batch_size})...{Style.RESET_ALL}")
            report = service.dispatch_digital(args.code, args.requester)
            reporter.print_digital(report)
        else:
            if args.kind == "scan":
                rows = service.scan_history(args.count, args.user, args.index)
            else:
                rows = service.attempt_history(args.count, args.user, args.index)
            reporter.print_history(rows)
            return 0
    except SigninError as e:
        print(f"{Fore.RED}[!] {e.kind.value}: {e}{Style.RESET_ALL}")
        return 3 if e.retryable else 2

    if getattr(args, "json_report", None):
        generate_json_report(report.to_dict(), args.json_report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
