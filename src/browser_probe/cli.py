"""
CLI for browser-probe.

Detects installed Chromium-family browsers, checks that each one starts,
and with --test-all opens the target site in every detected browser.
"""

import argparse
import asyncio
import logging
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import Settings
from .registry import RegistryError, default_registry, load_registry
from .reporter import Reporter
from .runner import run_diagnostics

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="browser-probe",
        description="Detect installed Chromium-family browsers and check that they start.",
        epilog="""
Examples:
  # Detect browsers and probe each one headless
  browser-probe

  # Also open the target site in every detected browser
  browser-probe --test-all

  # Only look at Brave, with a custom registry
  browser-probe --browser brave --registry browsers.json
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"browser-probe {__version__}",
    )
    parser.add_argument(
        "--test-all",
        action="store_true",
        help="Run the navigation scenario in every detected browser",
    )
    parser.add_argument(
        "--browser",
        metavar="KEY",
        help="Only probe the browser registered under KEY (e.g. chrome, chromium, brave)",
    )
    parser.add_argument(
        "--registry",
        metavar="PATH",
        help="JSON file describing the browsers to probe (default: built-in macOS paths)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any probe or scenario failed",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main(argv: Optional[Sequence[str]] = None, console: Optional[Console] = None) -> int:
    """
    Entry point for the CLI.

    Returns:
        Exit code (0 unless --strict saw a failure, or usage was invalid)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    if console is None:
        console = Console()
    reporter = Reporter(console)

    settings = Settings.from_env()
    if args.registry:
        settings.registry_path = args.registry

    try:
        if settings.registry_path:
            registry = load_registry(settings.registry_path)
        else:
            registry = default_registry()
    except RegistryError as e:
        console.print(f"[bold red]Registry error: {escape(str(e))}[/bold red]", highlight=False)
        return EXIT_USAGE

    if args.browser:
        if args.browser not in registry:
            known = ", ".join(registry)
            console.print(
                f"[bold red]Unknown browser '{escape(args.browser)}'. Use one of: {escape(known)}[/bold red]",
                highlight=False,
            )
            return EXIT_USAGE
        registry = {args.browser: registry[args.browser]}

    try:
        report = asyncio.run(
            run_diagnostics(registry, settings, reporter, test_all=args.test_all)
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return EXIT_INTERRUPTED

    failures = report.failures
    reporter.exit_status(failures)
    if failures and args.strict:
        return EXIT_FAILURES
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
