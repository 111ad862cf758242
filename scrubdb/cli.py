import argparse
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional, TextIO

import yaml

from scrubdb.config.loader import load_config, resolve_config_path
from scrubdb.config.models import Config
from scrubdb.core.engine import Anonymizer, FakeValueGenerator, ScanReport, ScrubEngine, tally
from scrubdb.utils.io import iter_lines

logger = logging.getLogger("scrubdb")

EXAMPLE_CONFIG = """\
preserve_relationships: true
custom_rules:
  users.email: fake_email
  users.phone: fake_phone
  orders.credit_card_number: mask_credit_card"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scrub-db",
        description="Anonymize PII in database dumps using manual configuration",
    )
    parser.add_argument(
        "-c", "--cfg", "--config", dest="config",
        help="Config file path (looks for scrub-db.yaml if not given)",
    )
    parser.add_argument("--stdin", action="store_true", help="Read from stdin even when it is a terminal")
    parser.add_argument("-i", "--input", help="Input dump (defaults to STDIN)")
    parser.add_argument("-o", "--output", help="Output file (defaults to STDOUT)")
    parser.add_argument("--seed", type=int, help="Seed for reproducible fake values")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details")
    sub = parser.add_subparsers(dest="cmd")
    sub.add_parser("scan", help="Count lines with potential PII without changing anything")
    return parser


def format_report(report: ScanReport) -> str:
    lines = [
        "Scan results:",
        f"  {report.email_lines} lines with potential email addresses",
        f"  {report.phone_lines} lines with potential phone numbers",
        f"  {report.creditcard_lines} lines with potential credit card numbers",
        f"  {report.total_lines} total lines scanned",
    ]
    if report.has_findings:
        lines.append("Add custom_rules to scrub-db.yaml to anonymize these values.")
    else:
        lines.append("No obvious PII patterns detected in this dump.")
    return "\n".join(lines)


def _load(path: Optional[str]) -> Config:
    if path:
        logger.info("Using config: %s", path)
        return load_config(path)
    logger.warning("No config file found! Create scrub-db.yaml with anonymization rules, e.g.:\n%s", EXAMPLE_CONFIG)
    return Config.default()


@contextmanager
def _open_input(path: Optional[str]) -> Iterator[TextIO]:
    if path is None:
        sys.stdin.reconfigure(encoding="utf-8")
        yield sys.stdin
    else:
        with open(path, "r", encoding="utf-8") as fh:
            yield fh


@contextmanager
def _open_output(path: Optional[str]) -> Iterator[TextIO]:
    if path is None:
        sys.stdout.reconfigure(encoding="utf-8")
        yield sys.stdout
        sys.stdout.flush()
    else:
        with open(path, "w", encoding="utf-8") as fh:
            yield fh


def run_scan(args) -> int:
    logger.info("Reading SQL dump...")
    with _open_input(args.input) as src:
        report = tally(iter_lines(src))
    logger.info(format_report(report))
    return 0


def run_scrub(args) -> int:
    cfg = _load(resolve_config_path(args.config))
    engine = ScrubEngine(cfg, Anonymizer(generator=FakeValueGenerator(seed=args.seed)))
    if not engine.rules:
        logger.warning("No anonymization rules defined! Data will pass through unchanged.")

    logger.info("Reading SQL dump...")
    # the output is only opened once the config has loaded
    with _open_input(args.input) as src, _open_output(args.output) as out:
        count = engine.process_stream(src, out)
    logger.info("Processed %d lines", count)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    if args.cmd != "scan" and args.input is None and not args.stdin and sys.stdin.isatty():
        logger.info("scrub-db requires a dump on stdin or --input, and a scrub-db.yaml with rules.")
        parser.print_help(sys.stderr)
        return 0

    try:
        if args.cmd == "scan":
            return run_scan(args)
        return run_scrub(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("scrub-db: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
