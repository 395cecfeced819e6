"""
blame-nav CLI — interactive git blame that steps back through history.

Commands:
    blame-nav blame <file>             Open the interactive blame view
    blame-nav blame <file> --print     Print the blame view once
    blame-nav blame <file> --json      Print blame blocks as JSON
    blame-nav config show              Show resolved settings
    blame-nav config set <key> <value> Set a project (or --global) setting

Keys in the blame view:
    j/k, ↑/↓, PgUp/PgDn, g/G   move the cursor
    b                          blame at the parent of the line's commit
    y                          copy the line's commit hash
    q, Esc                     close
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from .config import (
    KNOWN_KEYS,
    get_global_config,
    get_project_config,
    get_settings,
    parse_value,
    save_global_config,
    save_project_config,
)
from .git import find_repo_root
from .host import register
from .session import BlameSession
from .terminal import TerminalHost, render_ansi

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def _fail(message: str) -> None:
    print(f"blame-nav: {message}", file=sys.stderr)
    sys.exit(1)


# ===================================================================
# blame
# ===================================================================

def _blocks_json(session: BlameSession) -> str:
    state = session.state
    blocks = []
    for block in state.blocks:
        blocks.append({
            "commit_sha": block.commit_hash,
            "start_line": block.start_line,
            "end_line": block.end_line,
            "author": block.author,
            "author_time": block.author_time,
            "relative_date": block.relative_date,
            "summary": block.summary,
            "lines": [line.content for line in block.lines],
        })
    output = {
        "file": state.source_file_path,
        "ref": state.current_commit or "HEAD",
        "blocks": blocks,
    }
    return json.dumps(output, indent=2)


def cmd_blame(args):
    """Blame a file, interactively or as one-shot output."""
    file_path = os.path.abspath(args.file)
    if not os.path.isfile(file_path):
        _fail(f"file not found: {args.file}")

    repo_root = find_repo_root(file_path)
    settings = get_settings(repo_root or os.path.dirname(file_path))
    color = settings.color and not args.no_color

    interactive = not (args.print or args.json)
    if interactive and not (sys.stdin.isatty() and sys.stdout.isatty()):
        _fail("the interactive view needs a terminal (use --print or --json)")

    host = TerminalHost(file_path, color=color)
    session = BlameSession(host, settings=settings)
    register(host, session)

    if not session.open(ref=args.rev):
        _fail(host.status)

    if args.json:
        print(_blocks_json(session))
    elif args.print:
        print(render_ansi(host.content(), host.spans(), color=color and sys.stdout.isatty()))
    else:
        host.run()


# ===================================================================
# config
# ===================================================================

def cmd_config(args):
    action = getattr(args, "config_action", None)
    project_dir = find_repo_root(os.getcwd()) or os.getcwd()

    if action == "show":
        settings = get_settings(project_dir)
        print("blame-nav settings\n")
        print(f"  git:       {settings.git}")
        print(f"  timeout:   {settings.timeout if settings.timeout is not None else 'none'}")
        print(f"  color:     {'on' if settings.color else 'off'}")
        if settings.clipboard:
            print(f"  clipboard: {json.dumps(settings.clipboard)}")
        else:
            print("  clipboard: platform default")
        if settings.sources:
            print(f"\n  from: {', '.join(settings.sources)}")

    elif action == "set":
        try:
            value = parse_value(args.key, args.value)
        except ValueError as e:
            _fail(str(e))
        if args.global_:
            config = get_global_config()
            config[args.key] = value
            save_global_config(config)
            print(f"Set {args.key} in ~/.blame-nav/config.json")
        else:
            config = get_project_config(project_dir)
            config[args.key] = value
            save_project_config(config, project_dir)
            print(f"Set {args.key} in {os.path.join(project_dir, '.blame-nav', 'config.json')}")

    else:
        print("Usage: blame-nav config {show,set}")


# ===================================================================
# Entry point
# ===================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blame-nav",
        description="blame-nav — step back through git blame history",
    )
    parser.add_argument(
        "--version", action="version", version=f"blame-nav {VERSION}",
    )
    parser.add_argument("--verbose", "-v", action="store_true", default=False,
                        help="Log debug output to stderr")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    # blame <file>
    sub_blame = sub.add_parser("blame", help="Show git blame for a file")
    sub_blame.add_argument("file", help="File path to blame")
    sub_blame.add_argument("--rev", "-r", default=None,
                           help="Start at this commit instead of the working tree")
    output = sub_blame.add_mutually_exclusive_group()
    output.add_argument("--print", "-p", action="store_true", default=False,
                        help="Print the blame view and exit")
    output.add_argument("--json", action="store_true", default=False,
                        help="Print blame blocks as JSON and exit")
    sub_blame.add_argument("--no-color", action="store_true", default=False,
                           help="Disable colours")

    # config {show,set}
    sub_config = sub.add_parser("config", help="Show or change settings")
    config_sub = sub_config.add_subparsers(dest="config_action", metavar="ACTION")
    config_sub.add_parser("show", help="Show resolved settings")
    config_set = config_sub.add_parser("set", help="Set a setting")
    config_set.add_argument("key", choices=KNOWN_KEYS, help="Setting name")
    config_set.add_argument("value", help="New value")
    config_set.add_argument("--global", dest="global_", action="store_true", default=False,
                            help="Write ~/.blame-nav/config.json instead of the project config")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    dispatch = {
        "blame": cmd_blame,
        "config": cmd_config,
    }
    dispatch[args.command](args)


if __name__ == "__main__":
    main()
