"""Command line interface for composing organization state-access policies."""

from __future__ import annotations

import argparse
import logging
import sys
import warnings
from pathlib import Path
from typing import Any, List

from cli import config, output
from core.accounts.inventory import OrganizationInventory, caller_account_id, load_accounts_file
from core.accounts.resolver import resolve_environments
from core.errors import ConfigurationValidationError, ResolutionGapWarning
from core.models import AccountRecord, PolicyDoc
from core.plan import compose_plan, environment_document
from core.policy.diff import PolicyDiff
from core.policy.evaluator import ALLOW, PolicyEvaluator, RequestContext
from core.validation import validate_settings

FORMATS = ["json", "md", "table"]
ENVIRONMENT_DOCUMENTS = {
    "trust": "trust",
    "permissions": "permissions",
    "state-access": "state-access",
}

logger = logging.getLogger(__name__)


class CLIError(Exception):
    def __init__(self, message: str, exit_code: int = 2) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def _add_output_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--output", type=Path)
    cmd.add_argument("--format", choices=FORMATS, help="Output format override")


def _add_source_args(cmd: argparse.ArgumentParser, *, management: bool = True) -> None:
    source = cmd.add_mutually_exclusive_group(required=True)
    source.add_argument("--accounts", type=Path, help="JSON or JSON-lines file of {name, id} accounts")
    source.add_argument("--from-org", action="store_true", help="List accounts through AWS Organizations")
    if management:
        cmd.add_argument("--management-account-id", help="Account holding the state bucket and lock table")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="orgstate", description="Remote-state access policy toolkit")
    parser.add_argument("--config", type=Path, default=Path("orgstate.yml"), help="Path to configuration file")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate ---------------------------------------------------------------
    validate_cmd = subparsers.add_parser("validate", help="Validate the configuration file")
    _add_output_args(validate_cmd)

    # resolve ----------------------------------------------------------------
    resolve_cmd = subparsers.add_parser("resolve", help="Map environments to organization accounts")
    _add_source_args(resolve_cmd, management=False)
    _add_output_args(resolve_cmd)

    # plan -------------------------------------------------------------------
    plan_cmd = subparsers.add_parser("plan", help="Compose every document for the organization")
    _add_source_args(plan_cmd)
    _add_output_args(plan_cmd)

    # per-environment documents ----------------------------------------------
    for name, help_text in (
        ("trust", "Trust policy for an environment's execution role"),
        ("permissions", "Permission policy for an environment's execution role"),
        ("state-access", "State key access policy for an environment's execution role"),
    ):
        env_cmd = subparsers.add_parser(name, help=help_text)
        env_cmd.add_argument("--environment", required=True)
        _add_source_args(env_cmd)
        _add_output_args(env_cmd)

    # shared storage ---------------------------------------------------------
    bucket_cmd = subparsers.add_parser("bucket-policy", help="Resource policy for the state bucket")
    _add_source_args(bucket_cmd)
    _add_output_args(bucket_cmd)

    lock_cmd = subparsers.add_parser("lock-policy", help="Resource policy for the lock table")
    _add_source_args(lock_cmd)
    _add_output_args(lock_cmd)

    # check ------------------------------------------------------------------
    check_cmd = subparsers.add_parser("check", help="Evaluate a policy document against a request")
    check_cmd.add_argument("--policy", type=Path, required=True)
    check_cmd.add_argument("--principal", required=True, help="Principal ARN making the request")
    check_cmd.add_argument("--action", required=True)
    check_cmd.add_argument("--resource", default="*")
    check_cmd.add_argument("--region")
    check_cmd.add_argument("--insecure", action="store_true", help="Request made without TLS")
    check_cmd.add_argument("--mfa", action="store_true", help="Session authenticated with MFA")
    check_cmd.add_argument(
        "--context",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Additional condition key (repeatable)",
    )
    _add_output_args(check_cmd)

    # diff -------------------------------------------------------------------
    diff_cmd = subparsers.add_parser("diff", help="Compare two permission documents")
    diff_cmd.add_argument("--before", required=True, type=Path)
    diff_cmd.add_argument("--after", required=True, type=Path)
    diff_cmd.add_argument("--cases", type=Path, help="JSON requests evaluated against both documents")
    _add_output_args(diff_cmd)

    return parser


def app(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = config.load_settings(args.config)
        merged = settings.merge_cli(
            format_override=getattr(args, "format", None),
            management_account_id=getattr(args, "management_account_id", None),
        )

        if args.command == "validate":
            return _cmd_validate(args, merged)
        if args.command == "resolve":
            return _cmd_resolve(args, merged)
        if args.command == "plan":
            return _cmd_plan(args, merged)
        if args.command in ENVIRONMENT_DOCUMENTS:
            return _cmd_environment_document(args, merged)
        if args.command in {"bucket-policy", "lock-policy"}:
            return _cmd_storage_policy(args, merged)
        if args.command == "check":
            return _cmd_check(args, merged)
        if args.command == "diff":
            return _cmd_diff(args, merged)
    except ConfigurationValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    except CLIError as exc:
        print(exc, file=sys.stderr)
        return exc.exit_code
    except Exception as exc:  # pragma: no cover - unexpected errors bubble up
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


# ---------------------------------------------------------------------------
# Command implementations


def _cmd_validate(args: argparse.Namespace, settings: config.Settings) -> int:
    validate_settings(settings.stack)
    output.emit({"valid": True}, settings.default_format, output_path=args.output)
    return 0


def _cmd_resolve(args: argparse.Namespace, settings: config.Settings) -> int:
    stack = settings.stack
    validate_settings(stack)
    accounts = _load_accounts(args)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", ResolutionGapWarning)
        resolved, skipped = resolve_environments(accounts, stack.effective_prefix, stack.environments)
    payload = {
        "prefix": stack.effective_prefix,
        "environments": {environment.name: environment.account_id for environment in resolved},
        "skipped": skipped,
    }
    output.emit(payload, settings.default_format, output_path=args.output)
    return 0


def _cmd_plan(args: argparse.Namespace, settings: config.Settings) -> int:
    plan = _compose(args, settings)
    output.emit(plan.to_document(), settings.default_format, output_path=args.output)
    return 0


def _cmd_environment_document(args: argparse.Namespace, settings: config.Settings) -> int:
    if args.environment not in settings.stack.environments:
        raise CLIError(f"Environment '{args.environment}' is not configured ({', '.join(settings.stack.environments)})")
    plan = _compose(args, settings)
    document = environment_document(plan, args.environment, ENVIRONMENT_DOCUMENTS[args.command])
    if document is None:
        raise CLIError(f"Environment '{args.environment}' has no resolved account; nothing to generate", exit_code=4)
    output.emit(document.to_document(), settings.default_format, output_path=args.output)
    return 0


def _cmd_storage_policy(args: argparse.Namespace, settings: config.Settings) -> int:
    plan = _compose(args, settings)
    document = plan.bucket_policy if args.command == "bucket-policy" else plan.lock_table_policy
    output.emit(document.to_document() if document else None, settings.default_format, output_path=args.output)
    return 0


def _cmd_check(args: argparse.Namespace, settings: config.Settings) -> int:
    policy = PolicyDoc.from_document(output.load_json_document(args.policy))
    request = RequestContext(
        principal_arn=args.principal,
        action=args.action,
        resource=args.resource,
        secure_transport=not args.insecure,
        region=args.region,
        mfa_present=True if args.mfa else None,
        extra=_parse_context(args.context),
    )
    decision = PolicyEvaluator().evaluate(policy, request)
    payload = {
        "principal": request.principal_arn,
        "action": request.action,
        "resource": request.resource,
        "decision": decision,
    }
    output.emit(payload, settings.default_format, output_path=args.output)
    return 0 if decision == ALLOW else 3


def _cmd_diff(args: argparse.Namespace, settings: config.Settings) -> int:
    before = PolicyDoc.from_document(output.load_json_document(args.before))
    after = PolicyDoc.from_document(output.load_json_document(args.after))
    diff = PolicyDiff(before, after)
    payload: dict[str, Any] = {"metrics": diff.as_json()}
    if args.cases:
        requests = [_request_from_case(item) for item in output.load_json_objects(args.cases)]
        payload["cases"] = PolicyEvaluator().compare(before, after, requests)
    output.emit(payload, settings.default_format, output_path=args.output)
    return 0


# ---------------------------------------------------------------------------
# Helpers


def _compose(args: argparse.Namespace, settings: config.Settings):
    stack = settings.stack
    validate_settings(stack)
    accounts = _load_accounts(args)
    management_account_id = stack.management_account_id or caller_account_id()
    logger.debug("state account=%s accounts=%d", management_account_id, len(accounts))
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", ResolutionGapWarning)
        return compose_plan(stack, accounts, management_account_id)


def _load_accounts(args: argparse.Namespace) -> List[AccountRecord]:
    if getattr(args, "accounts", None):
        if not args.accounts.exists():
            raise CLIError(f"Accounts file not found: {args.accounts}")
        return load_accounts_file(args.accounts)
    if getattr(args, "from_org", False):
        return OrganizationInventory().list_accounts()
    raise CLIError("Must provide --accounts or --from-org")


def _parse_context(entries: list[str]) -> dict[str, str]:
    context: dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        if not sep or not key:
            raise CLIError(f"Invalid --context entry (expected KEY=VALUE): {entry}")
        context[key] = value
    return context


def _request_from_case(item: dict[str, Any]) -> RequestContext:
    return RequestContext(
        principal_arn=item.get("principal", "*"),
        action=item["action"],
        resource=item.get("resource", "*"),
        secure_transport=item.get("secureTransport", True),
        region=item.get("region"),
        mfa_present=item.get("mfa"),
        extra=item.get("context") or {},
    )


def main() -> None:
    raise SystemExit(app())


if __name__ == "__main__":
    main()
