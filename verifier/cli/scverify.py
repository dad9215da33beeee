from __future__ import annotations

"""scverify command-line interface entrypoint."""

import argparse
import contextlib
import json
import logging
import sys

from rich.console import Console

from verifier.adapters.artifact_source_fs import BuildDirectoryArtifactSource
from verifier.adapters.mythx_client import MythXClient
from verifier.adapters.progress_noop import NoopProgress
from verifier.adapters.progress_rich import RichProgress
from verifier.core.config import ANALYSIS_MODES, MAX_RATE_LIMIT, VerifyConfig, resolve_credentials
from verifier.core.errors import ConfigurationError, TransportError
from verifier.core.formatters import STYLES
from verifier.core.verify import Verifier, describe_failures
from verifier.core.version import get_version, version_string


def _configure_logging(debug: int) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format="**debug: %(name)s: %(message)s" if debug else "%(message)s")


def _parse_debug(value: str) -> int:
    """``--debug`` alone means level 1; ``--debug=2`` asks for payload dumps."""
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"debug level should be a number; got {value}") from None


def build_config(args: argparse.Namespace) -> VerifyConfig:
    """Layer CLI flags over the config file (or environment defaults)."""
    config = VerifyConfig.from_file(args.config) if args.config else VerifyConfig.from_env()
    overrides = {
        "rate_limit": args.limit,
        "timeout_s": args.timeout,
        "mode": args.mode,
        "style": args.style,
        "debug": args.debug,
        "job_id": args.uuid,
        "build_dir": args.build_dir,
        "api_url": args.api_url,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)
    if args.no_progress:
        config.progress = False
    return config


def version_command(client: MythXClient) -> int:
    print(f"scverify {get_version()}")
    try:
        print(version_string(client.api_version()))
    except TransportError as exc:
        print(f"Unable to fetch MythX version information: {exc}", file=sys.stderr)
        return 1
    return 0


def verify_command(args: argparse.Namespace) -> int:
    """Analyze contracts from the build directory and print the report."""
    if args.version:
        # the version endpoint needs neither credentials nor a valid config
        api_url = args.api_url or VerifyConfig.from_env().api_url
        return version_command(MythXClient(api_url=api_url))

    try:
        config = build_config(args)
        config.validate()
        credentials = resolve_credentials()
    except (ConfigurationError, FileNotFoundError, json.JSONDecodeError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    _configure_logging(config.debug)
    client = MythXClient(credentials, api_url=config.api_url, client_tool_name=config.client_tool_name)

    source = BuildDirectoryArtifactSource(config.build_dir)
    show_progress = config.progress and not config.job_id
    progress = RichProgress(args.contracts, console=Console(stderr=True)) if show_progress else NoopProgress()
    verifier = Verifier(client, source, progress)
    try:
        with progress if show_progress else contextlib.nullcontext():
            summary = verifier.run(config, args.contracts or None)
    except (ConfigurationError, FileNotFoundError, json.JSONDecodeError) as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except TransportError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if summary.rendered:
        print(summary.rendered)
    for line in describe_failures(summary, config.debug):
        print(line, file=sys.stderr)
    return 0 if summary.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scverify",
        description=(
            "Runs MythX analyses on compiled Solidity contracts. "
            "If no contracts are given, all are analyzed."
        ),
    )
    parser.add_argument("contracts", nargs="*", help="Contract names to analyze")
    parser.add_argument("--config", default=None, help="Path to a YAML or JSON config file")
    parser.add_argument("--build-dir", default=None, help="Directory holding truffle build JSON files")
    parser.add_argument("--api-url", default=None, help="Analysis service base URL")
    parser.add_argument(
        "--debug",
        nargs="?",
        const=1,
        default=None,
        type=_parse_debug,
        help="Additional debug output; use --debug=2 for more verbose output",
    )
    parser.add_argument("--uuid", default=None, help="Print in YAML results from a prior run having UUID")
    parser.add_argument("--mode", choices=ANALYSIS_MODES, default=None, help="Quick or in-depth (full) analysis")
    parser.add_argument("--style", choices=sorted(STYLES), default=None, help="Output report style")
    parser.add_argument("--timeout", type=int, default=None, help="Limit analysis time to this many seconds")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help=f"Have no more than N analysis requests pending at a time (0-{MAX_RATE_LIMIT})",
    )
    parser.add_argument("--no-progress", action="store_true", help="Do not display progress bars")
    parser.add_argument("--version", action="store_true", help="Show package and MythX version information")
    parser.set_defaults(func=verify_command)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
