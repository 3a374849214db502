"""Command-line entry point: render a composite and print the result.

Usage::

    python main.py render examples/identitycenters/example-minimal.yaml
    python main.py render COMPOSITE --observed examples/observed-resources/example-minimal/steps/1
    python main.py status COMPOSITE --observed DIR --format json

Documents go to stdout; structured logs go to stderr.
"""

import argparse
import sys

import yaml
from pydantic import ValidationError

from api.documents import dump_manifests, dump_output, dump_status, load_composite, load_observed
from api.exceptions import RenderError
from api.models import RenderRequest
from config import DEFAULT_REGION, OUTPUT_FORMAT, OUTPUT_FORMATS, STRICT_EXTENSIONS
from core.logger import IdentityCenterLogger
from core.pipeline import build_plan, render

logger = IdentityCenterLogger.get_logger()

EXIT_OK = 0
EXIT_RENDER_ERROR = 1
EXIT_BAD_INPUT = 2


# ── Argument parsing ─────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    """Return the ``render``/``status`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="idc-render",
        description="Render AWS Identity Center managed resources from a composite spec.",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    render_cmd = subcommands.add_parser("render", help="Print drafted resources and status")
    _add_common_arguments(render_cmd)
    render_cmd.add_argument(
        "--manifests-only",
        action="store_true",
        help="Print only the manifests as a multi-document YAML stream",
    )

    status_cmd = subcommands.add_parser("status", help="Print only the status summary")
    _add_common_arguments(status_cmd)
    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("composite", help="Path to the composite resource YAML")
    parser.add_argument(
        "--observed",
        default=None,
        help="Observed resources: a YAML file or a directory of YAML files",
    )
    parser.add_argument(
        "--format",
        dest="fmt",
        choices=OUTPUT_FORMATS,
        default=OUTPUT_FORMAT,
        help="Output format (default: %(default)s)",
    )
    parser.add_argument(
        "--strict-extensions",
        action="store_true",
        default=STRICT_EXTENSIONS,
        help="Fail when externalIdp is set instead of ignoring it",
    )


# ── Entry point ──────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        spec = load_composite(args.composite)
        observed = load_observed(args.observed)
        request = RenderRequest(spec=spec, observed=observed)
    except (OSError, ValueError, ValidationError, yaml.YAMLError) as exc:
        logger.error("Could not read input", extra={"error": str(exc), "composite": args.composite})
        return EXIT_BAD_INPUT

    try:
        output = render(
            request,
            plan=build_plan(strict_extensions=args.strict_extensions),
            default_region=DEFAULT_REGION,
        )
    except RenderError as exc:
        logger.error("Render rejected", extra={"error": exc.reason, "key": exc.key})
        return EXIT_RENDER_ERROR

    if args.command == "status":
        sys.stdout.write(dump_status(output, args.fmt))
    elif args.manifests_only:
        sys.stdout.write(dump_manifests(output))
    else:
        sys.stdout.write(dump_output(output, args.fmt))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
