import argparse
import asyncio
import logging
import sys
from typing import List, Optional, Sequence

from rich.console import Console

from licensewalker.__version__ import __version__
from licensewalker.core.render import print_tree
from licensewalker.core.walker import walk_packages

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="licensewalker",
        description="Print the license of every package in an npm dependency tree",
    )
    parser.add_argument("packages", nargs="*", help="Package identifiers, e.g. express or lodash@4.x")
    parser.add_argument("--browse", action="store_true", help="Open the interactive tree browser")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--verbose", action="store_true", help="Log diagnostics to stderr")
    parser.add_argument("--debug-log", metavar="FILE", help="Write debug logs to FILE")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(quiet: bool = True, debug_log: Optional[str] = None) -> None:
    """Keeps every library diagnostic off the terminal unless asked otherwise."""
    if debug_log:
        logging.basicConfig(filename=debug_log, level=logging.DEBUG, filemode="w", format=LOG_FORMAT)
    elif not quiet:
        logging.basicConfig(stream=sys.stderr, level=logging.INFO, format=LOG_FORMAT)
    else:
        # A root handler stops logging's last-resort stderr output
        logging.getLogger().addHandler(logging.NullHandler())


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Console script: walks each package and prints its license tree."""
    parser = build_parser()
    args = parser.parse_args(argv)
    packages: List[str] = args.packages
    assert len(packages) > 0, "at least one package identifier is required"
    if not packages:
        # Still reached under python -O
        parser.error("at least one package identifier is required")

    configure_logging(quiet=not args.verbose, debug_log=args.debug_log)

    if args.browse:
        from licensewalker.app import LicenseWalkerApp

        LicenseWalkerApp(packages).run()
        return

    trees = asyncio.run(walk_packages(packages))

    console = Console(highlight=False, no_color=args.no_color)
    for nodes in trees:
        print_tree(console, nodes)


# Development mode
if __name__ == "__main__":
    main()
