"""Command-line entry point for launching the session-tabs TUI."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from . import __version__
from .tui.app import AppConfig, SessionTabsApp

ROOT_ENV_VAR = "SESSION_TABS_PROJECT_ROOT"


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI parser for launching the TUI."""

    def _default_root() -> Path:
        env_value = os.environ.get(ROOT_ENV_VAR)
        return Path(env_value) if env_value else Path(".")

    parser = argparse.ArgumentParser(
        prog="session-tabs",
        description="Supervise agent conversations and file previews in unified tabs",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"session-tabs {__version__}",
    )

    parser.add_argument(
        "command",
        nargs="?",
        default="tui",
        choices=("tui",),
        help="Optional command selector (only 'tui' is available).",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=_default_root(),
        help=(
            "Project root of the first session "
            f"(default: current directory or ${ROOT_ENV_VAR})"
        ),
    )
    parser.add_argument(
        "--tool-type",
        default="claude-code",
        help="Agent type recorded on new sessions (default: claude-code)",
    )
    parser.add_argument(
        "--unread-only",
        action="store_true",
        help="Start with tab navigation limited to unread tabs and drafts",
    )
    parser.add_argument(
        "--dev-log-panel",
        action="store_true",
        help="Show the live developer log panel inside the TUI",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and run the TUI."""

    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command != "tui":  # pragma: no cover - enforced by argparse choices
        parser.error(f"Unsupported command: {args.command}")

    config = AppConfig(
        project_root=args.root,
        tool_type=args.tool_type,
        unread_only=args.unread_only,
        show_log_panel=args.dev_log_panel,
    )
    app = SessionTabsApp(config)
    app.run()
    return 0


def run(argv: list[str] | None = None) -> None:
    """Execute the CLI and exit the current process."""

    sys.exit(main(argv))


if __name__ == "__main__":  # pragma: no cover
    run()
