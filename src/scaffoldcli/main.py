"""Application entry point — CLI dispatcher for the ``scaffold`` command.

Commands:
  1. `scaffold list [-p|--prune]` — show registered projects.
  2. `scaffold add <path ...> [-d|--depth <0|1>]` — register local folders or remote repos.
  3. `scaffold remove <name ...>` — drop projects from the registry.
  4. `scaffold create <name> [<directory>] [-o|--overwrite]` — copy a project out.
  5. `scaffold [-h|--help] [-v|--version]` — help grid / version.

Each command loads settings and the registry, runs one SyncEngine operation
under asyncio.run(), and renders the result through output.py.
"""

import argparse
import asyncio
import logging
import sys

from rich.text import Text

from . import __version__, output

_USAGE = {
    "": "scaffold [-h|--help] [-v|--version]",
    "list": "scaffold list [-p|--prune]",
    "add": "scaffold add <path ...> [-d|--depth <0|1>]",
    "remove": "scaffold remove <name ...>",
    "create": "scaffold create <name> [<directory>] [-o|--overwrite]",
}

_HELP = [
    ("list [-p|--prune]", "List all projects."),
    ("add <path ...> [-d|--depth <0|1>]", "Add projects with path of a local folder or a remote url."),
    ("remove <name ...>", "Remove projects from list."),
    ("create <name> [<directory>] [-o|--overwrite]", "Create a project by copying the templates folder."),
]


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that reports errors as the command's USAGE line."""

    def __init__(self, *args, usage_line: str = "", **kwargs) -> None:
        kwargs.setdefault("add_help", False)
        super().__init__(*args, **kwargs)
        self.usage_line = usage_line

    def error(self, message: str):  # type: ignore[override]
        logging.getLogger(__name__).debug("argument error: %s", message)
        output.usage(self.usage_line)
        raise SystemExit(2)


def _build_parser() -> _Parser:
    parser = _Parser(prog="scaffold", usage_line=_USAGE[""])
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("-v", "--version", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", parser_class=_Parser)

    p = sub.add_parser("list", usage_line=_USAGE["list"])
    p.add_argument("-p", "--prune", action="store_true")

    p = sub.add_parser("add", usage_line=_USAGE["add"])
    p.add_argument("paths", nargs="+")
    p.add_argument("-d", "--depth", type=int, choices=(0, 1), default=0)

    p = sub.add_parser("remove", usage_line=_USAGE["remove"])
    p.add_argument("names", nargs="+")

    p = sub.add_parser("create", usage_line=_USAGE["create"])
    p.add_argument("name")
    p.add_argument("directory", nargs="?")
    p.add_argument("-o", "--overwrite", action="store_true")
    return parser


def _print_help() -> None:
    output.grid([("scaffold", "[-h|--help] [-v|--version]"), ("", "<command> [<flags>]")], space=1)
    output.console.print("\nAvailable commands are as follows:\n")
    output.grid(list(_HELP))


async def _run(engine, args: argparse.Namespace) -> int:
    """Dispatch one parsed command to the engine and render its result."""
    if args.command == "list":
        rows = await engine.list_projects(prune=args.prune)
        if args.prune:
            output.changes(engine.store.changes)
        output.grid([(Text(name, style="green"), proj.path) for name, proj in rows])
        return 0

    if args.command == "add":
        report = await engine.add(args.paths, depth=args.depth)
        output.clear()
        output.changes(report.changes)
        output.result(report.succeeded, report.failures)
        return 1 if report.failures else 0

    if args.command == "remove":
        output.changes(await engine.remove(args.names))
        return 0

    if args.command == "create":
        result = await engine.create(args.name, args.directory, overwrite=args.overwrite)
        output.clear()
        if result.warning:
            output.warn(result.warning)
        output.info(f"Project created in '{result.target}'.")
        return 0

    raise ValueError(f"Unknown command: {args.command!r}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    if argv is None:
        argv = sys.argv[1:]

    # Top-level flags take no values, so the first positional is the command.
    command = next((a for a in argv if not a.startswith("-")), None)
    if command is not None and command not in _USAGE:
        output.error(f"'{command}' is not a valid command. See 'scaffold --help'.")
        return 1

    try:
        args = _build_parser().parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 2

    from .settings import load_settings

    try:
        config = load_settings()
    except ValueError as e:
        output.error(str(e))
        return 1

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.WARNING,
    )
    if args.verbose:
        logging.getLogger("scaffoldcli").setLevel(logging.DEBUG)
    elif config.log_level:
        logging.getLogger("scaffoldcli").setLevel(config.log_level)

    if args.command is None:
        if args.help and args.version:
            output.usage(_USAGE[""])
            return 2
        if args.version:
            output.console.print(__version__)
        else:
            _print_help()
        return 0

    from .engine import SyncEngine
    from .errors import ScaffoldError
    from .registry.store import RegistryStore

    store = RegistryStore(config.store_file, config.cache_dir)
    try:
        store.load()
        engine = SyncEngine(config, store, on_status=output.status)
        return asyncio.run(_run(engine, args))
    except ScaffoldError as e:
        output.clear()
        output.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
