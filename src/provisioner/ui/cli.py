from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from provisioner.app import apply_stripe, plan_cloudflare, plan_stripe
from provisioner.config import (
    ConfigurationError,
    RetryPolicy,
    configure_logging,
    default_stripe_resilience,
    format_redacted,
    get_bootstrap_env,
)
from provisioner.config.bootstrap import WEBHOOK_PATH
from provisioner.domain.errors import ConfigParseError, ProviderCallError
from provisioner.domain.provisioning import build_products_payload, format_plan, format_result

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from provisioner.config import BootstrapEnv, ResilienceConfig

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--project-id", type=str, help="Override PROJECT_ID")
    parser.add_argument("--d1-name", type=str, help="Override D1_DATABASE_NAME")
    parser.add_argument("--r2-bucket", type=str, help="Override CLOUDFLARE_R2_BUCKET")
    parser.add_argument("--webhook-url", type=str, help="Override STRIPE_WEBHOOK_URL")
    parser.add_argument(
        "--base-url",
        type=str,
        help=f"Deployed app URL; the webhook URL becomes <base-url>{WEBHOOK_PATH}",
    )
    parser.add_argument(
        "--skip-wrangler",
        action="store_true",
        help="Do not print the Cloudflare plan",
    )
    parser.add_argument(
        "--attempts",
        type=int,
        default=None,
        help="Maximum attempts per Stripe request, including the first one",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Backoff factor in seconds between Stripe request attempts",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Timeout in seconds for each Stripe request",
    )
    parser.add_argument(
        "--fail-on-warnings",
        action="store_true",
        help="Exit with status 1 when any warning was reported",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Provision Stripe billing resources and plan Cloudflare resources"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    preflight = subparsers.add_parser("preflight", help="Print the provisioning plans")
    _add_common_arguments(preflight)

    apply = subparsers.add_parser("apply", help="Reconcile Stripe with the configured catalog")
    _add_common_arguments(apply)
    apply.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without calling any mutating endpoint",
    )
    apply.add_argument(
        "--catalog",
        type=Path,
        help="Write the frontend products payload (JSON) to this path",
    )

    return parser.parse_args(list(argv))


def _env_overrides(args: argparse.Namespace) -> dict[str, str | None]:
    overrides: dict[str, str | None] = {}
    if args.project_id:
        overrides["PROJECT_ID"] = args.project_id
    if args.d1_name:
        overrides["D1_DATABASE_NAME"] = args.d1_name
    if args.r2_bucket:
        overrides["CLOUDFLARE_R2_BUCKET"] = args.r2_bucket
    if args.webhook_url:
        overrides["STRIPE_WEBHOOK_URL"] = args.webhook_url
    elif args.base_url:
        overrides["STRIPE_WEBHOOK_URL"] = f"{args.base_url.rstrip('/')}{WEBHOOK_PATH}"
    return overrides


def _resilience(args: argparse.Namespace) -> ResilienceConfig:
    if args.attempts is not None and args.attempts < 1:
        raise ValueError("--attempts must be at least 1")
    if args.delay is not None and args.delay < 0:
        raise ValueError("--delay must be non-negative")
    if args.timeout is not None and args.timeout <= 0:
        raise ValueError("--timeout must be positive")

    defaults = RetryPolicy()
    retry = RetryPolicy(
        total=args.attempts - 1 if args.attempts is not None else defaults.total,
        backoff_factor=args.delay if args.delay is not None else defaults.backoff_factor,
    )
    return default_stripe_resilience(retry=retry, timeout_seconds=args.timeout)


def _run_preflight(
    env: BootstrapEnv,
    args: argparse.Namespace,
    resilience: ResilienceConfig,
) -> tuple[list[str], bool]:
    warnings: list[str] = []
    stripe_plan = plan_stripe(env, resilience=resilience)
    if stripe_plan is None:
        print("Stripe: no products configured, skipping")  # noqa: T201
    else:
        print(format_plan(stripe_plan))  # noqa: T201
        warnings.extend(stripe_plan.warnings)

    if not args.skip_wrangler:
        edge_plan = plan_cloudflare(env)
        print()  # noqa: T201
        print(format_plan(edge_plan))  # noqa: T201
        warnings.extend(edge_plan.warnings)
    return warnings, False


def _run_apply(
    env: BootstrapEnv,
    args: argparse.Namespace,
    resilience: ResilienceConfig,
) -> tuple[list[str], bool]:
    warnings: list[str] = []
    failed = False
    run = apply_stripe(env, resilience=resilience, dry_run=args.dry_run)
    if run is None:
        print("Stripe: no products configured, skipping")  # noqa: T201
    else:
        print(format_result(run.result))  # noqa: T201
        warnings.extend(run.result.warnings)
        failed = not run.result.succeeded
        print()  # noqa: T201
        if run.env_updates:
            print("Generated env updates:")  # noqa: T201
            print(format_redacted(sorted(run.env_updates.items())))  # noqa: T201
        else:
            print("Generated env updates: none (dry run)")  # noqa: T201
        if args.catalog is not None and args.dry_run:
            log.warning("Not writing products payload to %s during a dry run", args.catalog)
        elif args.catalog is not None:
            args.catalog.write_text(build_products_payload(run.products, run.result) + "\n")
            log.info("Wrote products payload to %s", args.catalog)

    if not args.skip_wrangler:
        edge_plan = plan_cloudflare(env)
        print()  # noqa: T201
        print(format_plan(edge_plan))  # noqa: T201
        warnings.extend(edge_plan.warnings)
    return warnings, failed


def main(argv: Sequence[str] | None = None) -> int:
    """Main application entry point; returns the process exit code."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        resilience = _resilience(parsed_args)
        env = get_bootstrap_env(overrides=_env_overrides(parsed_args))
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        return EXIT_USAGE

    log.info("Environment:\n%s", format_redacted(env.summary()))

    try:
        if parsed_args.command == "preflight":
            warnings, failed = _run_preflight(env, parsed_args, resilience)
        elif parsed_args.command == "apply":
            warnings, failed = _run_apply(env, parsed_args, resilience)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except (ConfigParseError, ConfigurationError) as exc:
        log.error(f"Invalid configuration: {exc}")  # noqa: TRY400
        return EXIT_USAGE
    except ProviderCallError as exc:
        log.error(f"Provider call failed: {exc}")  # noqa: TRY400
        return EXIT_FAILURE
    except Exception:
        log.exception("Fatal error during provisioning")
        return EXIT_FAILURE

    if failed:
        log.error("Provisioning finished with failed steps")
        return EXIT_FAILURE
    if warnings and parsed_args.fail_on_warnings:
        log.error(
            "Provisioning reported %s warning(s) and --fail-on-warnings is set", len(warnings)
        )
        return EXIT_FAILURE
    return EXIT_OK


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    sys.exit(main())


if __name__ == "__main__":
    run()
