"""Command-line interface for the copyedit bot."""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from src.config.logger_config import configure_console, logger
from src.config.settings import LOG_LEVELS, Settings
from src.copyedit.infrastructure.site_config import ConfigError

# CLI flag -> RulesConfig field.
RULE_SWITCHES = (
    ("--no-typos", "typos"),
    ("--no-grammar", "grammar"),
    ("--no-prose-linting", "prose_linting"),
    ("--no-mw-linting", "mw_linting"),
    ("--no-international-english", "international_english"),
    ("--no-dubious", "dubious"),
    ("--no-glossary", "glossary"),
)


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="copyedit",
        description="Copy-edit and lint every page of the configured MediaWiki sites",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Edit the configured sites")
    run.add_argument("--simulate", action="store_true", help="Report changes without saving (implies verbose)")
    run.add_argument("--log-level", choices=LOG_LEVELS, default=None, help="Console verbosity")
    run.add_argument("--verbose", action="store_true", help="Same as --log-level verbose")
    for flag, field_name in RULE_SWITCHES:
        run.add_argument(flag, dest=f"disable_{field_name}", action="store_true", help=f"Disable {field_name} rules")
    run.add_argument("--sites", type=Path, help="Sites file (default: sites.json)")
    run.add_argument("--rules-dir", type=Path, help="Directory holding the rule files")
    run.add_argument("--report-dir", type=Path, help="Directory for the run report")
    run.add_argument("--no-progress", action="store_true", help="Hide progress bars")

    rules = subparsers.add_parser("rules", help="Curate rule files")
    actions = rules.add_subparsers(dest="action", required=True)
    check = actions.add_parser("check", help="Report unusable rules")
    check.add_argument("files", nargs="+", type=Path)
    sort = actions.add_parser("sort", help="Dedupe and sort a rule file in place")
    sort.add_argument("file", type=Path)
    plurals = actions.add_parser("plurals", help="Add +s plurals for single-word rules")
    plurals.add_argument("file", type=Path)
    plurals.add_argument("--prefix", default="Int Eng", help="Summary prefix for new rules")
    mappings = actions.add_parser("add-mappings", help="Merge a find->replace JSON object into a rule file")
    mappings.add_argument("file", type=Path)
    mappings.add_argument("mapping", type=Path)
    mappings.add_argument("--prefix", default="Int Eng", help="Summary prefix for new rules")

    return parser


def settings_from_args(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    settings = base or Settings.load()
    if args.sites:
        settings.sites_file = args.sites
    if args.rules_dir:
        settings.rules_dir = args.rules_dir
    if args.report_dir:
        settings.report_dir = args.report_dir
    if args.log_level:
        settings.log_level = args.log_level
    if args.verbose:
        settings.log_level = "verbose"
    if args.simulate:
        settings.simulate = True
    if args.no_progress:
        settings.show_progress = False
    disabled = {name: False for _, name in RULE_SWITCHES if getattr(args, f"disable_{name}")}
    if disabled:
        settings.rules = replace(settings.rules, **disabled)
    return settings.normalized()


def run_command(args: argparse.Namespace) -> int:
    from src.copyedit.run import run_edit

    settings = settings_from_args(args)
    configure_console(settings.log_level)
    try:
        report = run_edit(settings)
    except ConfigError as exc:
        logger.error("Configuration error: {}", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Done! {report.total_pages_changed} pages changed [{report.run_mode}]")
    return 0


def rules_command(args: argparse.Namespace) -> int:
    from src.copyedit import maintenance

    configure_console("light")
    try:
        if args.action == "check":
            return 1 if maintenance.check_files(args.files) else 0
        if args.action == "sort":
            maintenance.sort_file(args.file)
        elif args.action == "plurals":
            maintenance.pluralise_file(args.file, summary_prefix=args.prefix)
        elif args.action == "add-mappings":
            maintenance.merge_mappings(args.file, args.mapping, summary_prefix=args.prefix)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = create_argument_parser().parse_args(argv)
    if args.command == "run":
        return run_command(args)
    return rules_command(args)
