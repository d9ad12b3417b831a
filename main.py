"""Main entry point for skli."""

import argparse
import asyncio
import importlib.metadata
import os

from config import DEFAULT_CONFIG, Config
from skillsync import SkliError, SkliService
from utils import get_log_file_path, setup_logger, terminal_ui
from utils.runtime import ensure_runtime_dirs, get_config_file
from utils.tui import Spinner


async def _add(service: SkliService, args: argparse.Namespace) -> int:
    with Spinner(terminal_ui.console)(f"Fetching skills from {args.url}..."):
        results = await service.add(args.url, names=args.skill, sub_path=args.path, destination=args.dest)
    terminal_ui.print_install_results(results)
    failed = [r for r in results if not r.ok]
    if failed:
        terminal_ui.print_warning(f"{len(failed)} of {len(results)} skills could not be installed.")
        return 1
    terminal_ui.print_success(f"{len(results)} skill(s) installed into {args.dest or service.skills_root}")
    return 0


async def _remove(service: SkliService, args: argparse.Namespace) -> int:
    skill = await service.remove_by_name(args.name)
    terminal_ui.print_success(f"skill removed: {skill.name} ({skill.local_path})")
    return 0


async def _list(service: SkliService, args: argparse.Namespace) -> int:
    skills = await service.list_skills()
    if not skills:
        terminal_ui.print_info(f"No skills installed in {service.skills_root}. Use 'skli add <url>' first.")
        return 0
    terminal_ui.print_skills_table(skills)
    return 0


async def _sync(service: SkliService, args: argparse.Namespace) -> int:
    terminal_ui.print_info("Syncing skills...")
    with Spinner(terminal_ui.console)("Checking origin repositories..."):
        summary = await service.sync_all()

    if not summary.results:
        terminal_ui.print_info("No installed skills to sync (skli.lock is empty).")
        terminal_ui.print_info("Use 'skli add' to install skills first.")
        return 0

    terminal_ui.print_sync_results(summary.results)
    terminal_ui.print_divider()
    if summary.errors:
        terminal_ui.print_warning(
            f"Finished with {summary.errors} error(s). "
            f"{summary.updated} updated, {summary.skipped} unchanged."
        )
        return 1
    if summary.updated == 0:
        terminal_ui.print_success(f"All skills are up to date ({summary.skipped} checked).")
    else:
        terminal_ui.print_success(f"{summary.updated} skill(s) updated, {summary.skipped} unchanged.")
    return 0


async def _upload(service: SkliService, args: argparse.Namespace) -> int:
    with Spinner(terminal_ui.console)(f"Uploading {args.local_path} to {args.repo}..."):
        result = await service.upload_direct(args.repo, args.local_path)
    terminal_ui.print_success(f"PR ready for {result.skill.name}")
    terminal_ui.console.print(result.pr_url, markup=False, highlight=False)
    return 0


async def _show_config(service: SkliService, args: argparse.Namespace) -> int:
    config_file = get_config_file()
    terminal_ui.print_header("skli configuration", config_file)
    terminal_ui.print_config(Config.as_dict())
    if not os.path.isfile(config_file):
        terminal_ui.print_info(f"No preferences file yet. Create {config_file} like:")
        terminal_ui.console.print(DEFAULT_CONFIG, markup=False, highlight=False)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="skli", description="Install and sync skills from git repositories")

    try:
        version = importlib.metadata.version("skli")
    except importlib.metadata.PackageNotFoundError:
        version = "dev"
    parser.add_argument("--version", "-V", action="version", version=f"skli {version}")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging to ~/.skli/logs/",
    )

    sub = parser.add_subparsers(dest="command")

    add = sub.add_parser("add", help="Install skills from a git repository")
    add.add_argument("url", help="Clone URL or browse URL (…/tree/<branch>/<path>)")
    add.add_argument(
        "--skill",
        "-s",
        action="append",
        help="Skill name to install (repeatable, default: all)",
    )
    add.add_argument("--path", "-p", help="Directory inside the repository holding the skills")
    add.add_argument("--dest", "-d", help="Install directory (default: LOCAL_PATH from the config)")
    add.set_defaults(handler=_add)

    rm = sub.add_parser("rm", help="Remove an installed skill")
    rm.add_argument("name", help="Skill name or folder name")
    rm.set_defaults(handler=_remove)

    ls = sub.add_parser("list", help="List installed and unmanaged local skills")
    ls.set_defaults(handler=_list)

    sync = sub.add_parser("sync", help="Sync installed skills with their origin repositories")
    sync.set_defaults(handler=_sync)

    upload = sub.add_parser("upload", help="Publish a local skill to a repository as a PR/MR")
    upload.add_argument("repo", help="Target repository URL")
    upload.add_argument("local_path", help="Path of the local skill directory")
    upload.set_defaults(handler=_upload)

    cfg = sub.add_parser("config", help="Show the effective configuration")
    cfg.set_defaults(handler=_show_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "handler", None):
        parser.print_help()
        return 0

    # Initialize runtime directories (create logs dir only in verbose mode)
    ensure_runtime_dirs(create_logs=args.verbose)

    # Initialize logging only in verbose mode
    if args.verbose:
        setup_logger(command=args.command)

    try:
        Config.validate()
    except ValueError as e:
        terminal_ui.print_error(str(e), title="Configuration Error")
        return 1

    service = SkliService()
    try:
        code = asyncio.run(args.handler(service, args))
    except SkliError as e:
        terminal_ui.print_error(str(e))
        code = 1

    log_file = get_log_file_path()
    if args.verbose and log_file:
        terminal_ui.print_log_location(log_file)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
