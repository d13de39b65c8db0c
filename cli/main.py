import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TimeElapsedColumn, TimeRemainingColumn

from cli.console import print_result
from core.config import settings
from core.logging_config import configure_logging
from core.ports import parse_ports
from core.report import write_json, write_text
from pipeline.orchestrator import Orchestrator

log = logging.getLogger("portprobe.cli")

VERBOSITY_LEVELS = {
    "quiet": "error",
    "normal": "info",
    "verbose": "debug",
    "debug": "debug",
}


def _log_level(args) -> str:
    verbosity = getattr(args, "verbose", None)
    return VERBOSITY_LEVELS[verbosity] if verbosity else settings.log_level


def _print(obj):
    print(json.dumps(obj, indent=2, default=str))


def _progress(console: Console) -> Progress:
    return Progress(
        SpinnerColumn(style="green"),
        TimeElapsedColumn(),
        BarColumn(bar_width=40, complete_style="cyan", finished_style="blue"),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=True,
    )


def cmd_scan(args) -> int:
    console = Console()
    orch = Orchestrator()
    verbose = args.verbose == "verbose"

    try:
        total = len(parse_ports(args.ports))
        if args.quiet:
            summary = orch.scan(
                args.target,
                args.ports,
                args.concurrency,
                args.timeout_ms,
                on_result=lambda r: print_result(console, r, verbose, quiet=True),
            )
        else:
            with _progress(console) as progress:
                task_id = progress.add_task("scan", total=total)

                def on_result(result):
                    print_result(progress.console, result, verbose)
                    progress.advance(task_id)

                summary = orch.scan(args.target, args.ports, args.concurrency, args.timeout_ms, on_result=on_result)
    except ValueError as exc:
        print(f"[!] {exc}", file=sys.stderr)
        return 2

    if args.json:
        write_json(summary, Path(args.json).expanduser())
    if args.output:
        write_text(summary, Path(args.output).expanduser())
    return 0


def cmd_report(args) -> int:
    orch = Orchestrator()
    _print(orch.report(args.target))
    return 0


def cmd_verify(args) -> int:
    orch = Orchestrator()
    _print(orch.verify(write_test_doc=args.write_test_doc))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="portprobe", description="Fast async TCP port scanner")
    sub = parser.add_subparsers()

    p_scan = sub.add_parser("scan", help="Probe TCP ports on one IP address")
    p_scan.add_argument("target", help="IPv4/IPv6 address")
    p_scan.add_argument("-p", "--ports", default=settings.default_ports, help="e.g. 22,80,1000-1024")
    p_scan.add_argument("-c", "--concurrency", type=int, default=settings.concurrency)
    p_scan.add_argument("-t", "--timeout-ms", type=int, default=settings.timeout_ms)
    p_scan.add_argument("-v", "--verbose", choices=sorted(VERBOSITY_LEVELS), help="defaults to the configured log level")
    p_scan.add_argument("--json", help="write the summary as JSON to this path")
    p_scan.add_argument("--output", help="write a plain text report to this path")
    p_scan.add_argument("-q", "--quiet", action="store_true", help="only show open ports, no progress bar")
    p_scan.set_defaults(func=cmd_scan)

    p_report = sub.add_parser("report", help="List recorded scans")
    p_report.add_argument("target", nargs="?")
    p_report.set_defaults(func=cmd_report)

    p_verify = sub.add_parser("verify", help="Config + ES connectivity check")
    p_verify.add_argument("--write-test-doc", action="store_true", default=False, help="write test doc to ES")
    p_verify.set_defaults(func=cmd_verify)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    configure_logging(_log_level(args))
    try:
        return args.func(args)
    except Exception as exc:  # noqa: BLE001
        log.exception("unexpected failure: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
