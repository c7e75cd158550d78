from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Any

from netacl import __version__
from netacl.acl import AccessControlList
from netacl.config import acl_notations, config_path, read_document, resolve_config
from netacl.display import (
    print_acl_info,
    print_banner,
    print_decisions,
    print_error,
    print_errors,
    print_rules_table,
    print_success,
    print_validation,
)
from netacl.errors import AclBuildError, AclError, NotationError
from netacl.log import LOG_LEVELS, configure_logging
from netacl.Policy.ConfigPolicyEnum import ConfigPolicyEnum as ConfigPolicy
from netacl.Policy.RuleActionEnum import RuleActionEnum as Action
from netacl.rules import parse_range

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_REJECTED = 2


def _config_file(args: argparse.Namespace) -> Path | None:
    """The explicit --config, then NETACL_CONFIG_FILE, then config/config.yml if present."""
    if args.config or os.environ.get(ConfigPolicy.CONFIG_FILE_ENV.value):
        return config_path(args.config)
    default = Path(ConfigPolicy.DEFAULT_CONFIG_FILE.value)
    return default if default.is_file() else None


def _load_config(args: argparse.Namespace) -> dict[str, Any] | None:
    path = _config_file(args)
    if path is None:
        return None
    return resolve_config(read_document(path))


def _collect_notations(args: argparse.Namespace) -> tuple[list[Any], list[Any]]:
    allow: list[Any] = []
    deny: list[Any] = []
    config = _load_config(args)
    if config is not None:
        allow, deny = acl_notations(config)
    allow = list(allow) + list(getattr(args, "allow", None) or [])
    deny = list(deny) + list(getattr(args, "deny", None) or [])
    return allow, deny


def _build_acl(args: argparse.Namespace) -> AccessControlList:
    try:
        allow, deny = _collect_notations(args)
        return AccessControlList.from_notations(allow, deny)
    except AclBuildError as e:
        print_error(f"{len(e.errors)} invalid IP/CIDR rule{'s' if len(e.errors) != 1 else ''}:")
        print_errors(e.errors)
        sys.exit(EXIT_ERROR)
    except AclError as e:
        print_error(str(e))
        sys.exit(EXIT_ERROR)


def cmd_check(args: argparse.Namespace) -> None:
    acl = _build_acl(args)
    results = [(address, acl.explain(address)) for address in args.addresses]
    print_decisions(results)

    if all(decision.permitted for _, decision in results):
        sys.exit(EXIT_OK)
    sys.exit(EXIT_REJECTED)


def cmd_validate(args: argparse.Namespace) -> None:
    try:
        config = _load_config(args)
        if config is None:
            raise AclError("No configuration file found. Pass one with --config.")
        allow, deny = acl_notations(config)
    except AclError as e:
        print_error(str(e))
        sys.exit(EXIT_ERROR)

    rows = []
    for action, notations in ((Action.ALLOW, allow), (Action.DENY, deny)):
        for raw in notations:
            try:
                rows.append((action.value, raw, str(parse_range(raw)), None))
            except NotationError as e:
                rows.append((action.value, raw, None, e))

    print_validation(rows)
    invalid = sum(1 for row in rows if row[3] is not None)
    if invalid:
        print_error(f"{invalid} of {len(rows)} rules are invalid")
        sys.exit(EXIT_ERROR)
    print_success(f"All {len(rows)} rules are valid")


def cmd_rules(args: argparse.Namespace) -> None:
    print_banner()
    acl = _build_acl(args)
    print_acl_info(acl)
    print_rules_table(acl)


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c", "--config", default=None, metavar="FILE",
        help=f"YAML configuration file (default: ${ConfigPolicy.CONFIG_FILE_ENV.value} "
             f"or {ConfigPolicy.DEFAULT_CONFIG_FILE.value})",
    )


def _add_rule_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--allow", action="append", metavar="RULE",
        help="Allow this IP, CIDR or IP/mask (repeatable)",
    )
    parser.add_argument(
        "--deny", action="append", metavar="RULE",
        help="Deny this IP, CIDR or IP/mask (repeatable)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netacl",
        description="Evaluate IPv4 allow/deny access control lists",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level", choices=LOG_LEVELS, default="warning",
        help="Logging verbosity (default: warning)",
    )

    sub = parser.add_subparsers(dest="command", title="commands")

    # ── check ──────────────────────────────────────────────────────────────
    p_check = sub.add_parser(
        "check",
        help="Check whether addresses are permitted",
        description="Evaluate one or more source addresses against the access control list.",
    )
    p_check.add_argument("addresses", nargs="+", metavar="ADDRESS",
                         help="IPv4 address to evaluate")
    _add_config_argument(p_check)
    _add_rule_arguments(p_check)
    p_check.set_defaults(func=cmd_check)

    # ── validate ───────────────────────────────────────────────────────────
    p_validate = sub.add_parser("validate", help="Validate the rules of a configuration file")
    _add_config_argument(p_validate)
    p_validate.set_defaults(func=cmd_validate)

    # ── rules ──────────────────────────────────────────────────────────────
    p_rules = sub.add_parser("rules", help="Show the compiled rules")
    _add_config_argument(p_rules)
    _add_rule_arguments(p_rules)
    p_rules.set_defaults(func=cmd_rules)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
