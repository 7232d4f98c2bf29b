"""Command-line interface for ofx-typed."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ofx_typed import __version__ as pkg_version
from ofx_typed.config import DEFAULT_SETTINGS, ParserSettings, load_settings
from ofx_typed.document import parse
from ofx_typed.errors import OFXError
from ofx_typed.output import write_output
from ofx_typed.sources import ParseReport, gather_sources, read_ofx_text

LOGGER = logging.getLogger('ofx_typed.cli')
if not LOGGER.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    LOGGER.addHandler(handler)
LOGGER.setLevel(logging.INFO)
LOGGER.propagate = False


def _emit(message: str, args: argparse.Namespace, *, verbose_only: bool = False, error: bool = False) -> None:
    """Print ``message`` honoring ``--quiet``/``--verbose`` flags."""

    if verbose_only and not args.verbose:
        return
    if args.quiet and not error:
        return
    level = logging.ERROR if error else logging.INFO
    LOGGER.log(level, message)


def _process_source(path: Path, settings: ParserSettings) -> ParseReport:
    text = read_ofx_text(path, fallback_charset=settings.fallback_charset)
    return ParseReport(source_path=path, document=parse(text, settings=settings))


def _destination(report: ParseReport, args: argparse.Namespace) -> Path | None:
    if args.stdout:
        return None
    if args.output is not None:
        return args.output
    if args.output_dir is not None:
        return Path(args.output_dir) / f'{report.source_path.stem}.csv'
    return report.source_path.with_name(f'{report.source_path.stem}.csv')


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Convert OFX 1.x statements into typed data and CSV')
    parser.add_argument('targets', nargs='+', type=Path, help='Input files or directories')
    parser.add_argument('-c', '--config', type=Path, help='Path to configuration TOML')
    parser.add_argument('-o', '--output', type=Path, help='Path to write the CSV output')
    parser.add_argument('--output-dir', type=Path, help='Directory to write per-file CSV outputs')
    parser.add_argument('--stdout', action='store_true', help='Print the CSV to stdout instead of writing files')
    parser.add_argument('-V', '--version', action='version', version=f'%(prog)s {pkg_version}')
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-q', '--quiet', action='store_true', help='Suppress informational output')
    verbosity.add_argument('-v', '--verbose', action='store_true', help='Print verbose progress details')
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = load_settings(args.config) if args.config else DEFAULT_SETTINGS
    sources = gather_sources(args.targets)
    if args.output and len(sources) != 1:
        raise ValueError('--output can only be used when a single file is specified')
    if args.output and args.output_dir:
        raise ValueError('Use either --output or --output-dir, not both')
    if args.stdout and (args.output or args.output_dir):
        raise ValueError('--stdout is incompatible with --output or --output-dir')

    failures = 0
    for path in sources:
        try:
            report = _process_source(path, settings)
        except (OFXError, OSError, UnicodeDecodeError) as exc:
            _emit(f'Error processing {path}: {exc}', args, error=True)
            failures += 1
            continue
        _emit(report.summary(), args)
        for statement in report.document.statements:
            if statement.transactions is not None:
                for skipped in statement.transactions.skipped:
                    _emit(f'Warning: skipped transaction: {skipped}', args, error=True)
        destination = _destination(report, args)
        if destination is not None:
            destination.parent.mkdir(parents=True, exist_ok=True)
        payload = write_output(report.document, output_path=destination)
        if args.stdout:
            sys.stdout.write(payload)
        else:
            _emit(f'Wrote {destination}', args, verbose_only=True)
    return 1 if failures else 0


if __name__ == '__main__':  # pragma: no cover
    raise SystemExit(main())
