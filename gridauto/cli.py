# gridauto/cli.py
"""
@file cli.py
@brief Command-line interface for gridauto.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .actionlogger import ACTION_LOGGER
from .config import Configuration, available_presets, load_settings
from .controller import CycleController
from .exceptions import ConfigError, TimeoutError
from .logutil import setup_logging
from .models import ElementHint, StopReason
from .navigator import diagnose
from .scheduler import SerialScheduler

# Import the browser backend conditionally; playwright is an optional extra
try:
    from playwright.sync_api import sync_playwright
    from .web import PlaywrightGrid
    PLAYWRIGHT_AVAILABLE = True
except ImportError:
    PLAYWRIGHT_AVAILABLE = False
    sync_playwright = None
    PlaywrightGrid = None

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_FATAL = 2

log = logging.getLogger("gridauto.cli")


def _configure_action_logger_from_env() -> None:
    """Configure action logging from environment variables."""
    enabled = os.getenv("GRIDAUTO_ACTION_LOGGING", "").lower() in {"1", "true", "yes", "on"}
    if not enabled:
        ACTION_LOGGER.disable()
        return

    try:
        ACTION_LOGGER.configure(
            console=True,
            file_path=os.getenv("GRIDAUTO_ACTION_LOG_FILE"),
            format=os.getenv("GRIDAUTO_ACTION_LOG_FORMAT", "line"),
            max_traceback_chars=int(os.getenv("GRIDAUTO_ACTION_LOG_MAX_TRACEBACK", "4000")),
        )
    except ValueError as e:
        raise ConfigError(f"Invalid action log settings: {e}") from e
    ACTION_LOGGER.enable()


def _parse_overrides(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """Parse repeated KEY=VALUE options."""
    overrides: Dict[str, Any] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ConfigError(f"Expected KEY=VALUE, got: {pair}")
        key, value = pair.split("=", 1)
        overrides[key.strip()] = value.strip()
    return overrides


def _build_config(args: argparse.Namespace) -> Configuration:
    """Defaults -> preset -> settings file -> --set overrides."""
    if getattr(args, "config", None):
        config = load_settings(args.config, preset=args.preset)
    else:
        config = Configuration.from_preset(args.preset or "normal")
    return config.merge(_parse_overrides(getattr(args, "set", None)))


def _build_hint(args: argparse.Namespace, config: Configuration) -> ElementHint:
    if args.hint_json:
        try:
            with open(args.hint_json, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot read --hint-json {args.hint_json}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("--hint-json must contain a JSON object")
        return ElementHint.from_dict(data)

    hint = ElementHint(
        row_index=args.row,
        col_id=args.col,
        id=args.selector_id,
        class_name=args.class_name,
        tag_name=args.tag,
    )
    if hint.is_empty():
        # Without a designated control, start from the first grid row.
        hint = ElementHint(row_index=0, col_id=config.subject_column)
    return hint


def _exit_code_for(reason: Optional[StopReason]) -> int:
    if reason is StopReason.FATAL:
        return EXIT_FATAL
    return EXIT_OK


def _add_browser_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--url", "-u", required=True, help="Page hosting the grid")
    parser.add_argument("--headless", action="store_true", help="Run the browser without a window")
    parser.add_argument("--load-timeout", type=float, default=15.0, help="Seconds to wait for grid rows to render")


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", "-c", default=None, help="Path to settings.yaml")
    parser.add_argument("--preset", choices=sorted(available_presets()), default=None, help="Speed preset (default: normal)")
    parser.add_argument("--set", action="append", help="Configuration override in KEY=VALUE format (can be used multiple times)")


def _add_hint_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--row", type=int, default=None, help="Row index of the starting control")
    parser.add_argument("--col", default=None, help="Column id of the starting control")
    parser.add_argument("--selector-id", default=None, help="DOM id of the starting control")
    parser.add_argument("--class-name", default=None, help="Class name of the starting control")
    parser.add_argument("--tag", default=None, help="Tag name of the starting control")
    parser.add_argument("--hint-json", default=None, help="JSON file holding a context-menu element payload")


def _open_grid(page: Any, load_timeout: float) -> Any:
    """Wrap the page and wait for rows; a grid that never renders is only a warning."""
    grid = PlaywrightGrid(page)
    try:
        grid.wait_for_rows(timeout=load_timeout)
    except TimeoutError as e:
        cause = e.get_root_cause()
        if cause is not None:
            log.warning("No grid rows after %ss (last error %s: %s)", load_timeout, type(cause).__name__, cause)
        else:
            log.warning("No grid rows after %ss", load_timeout)
    return grid


def _run_in_browser(args: argparse.Namespace, config: Configuration, hint: ElementHint, pattern: bool) -> int:
    with sync_playwright() as pw:
        browser = pw.chromium.launch(headless=args.headless)
        try:
            page = browser.new_page()
            page.goto(args.url)
            grid = _open_grid(page, args.load_timeout)

            scheduler = SerialScheduler(sleep=grid.sleep)
            controller = CycleController(grid, scheduler=scheduler, config=config)
            grid.install_key_listener(config.stop_key, controller.handle_key)

            if pattern:
                controller.start_pattern_fill(hint)
            else:
                controller.start(hint, mode=args.mode)

            scheduler.run(until=lambda: not controller.running, timeout=args.max_duration)
            if controller.running:
                log.warning("Maximum duration reached, stopping")
                controller.stop()
        finally:
            browser.close()

    session = controller.last_session
    print(json.dumps(session.to_dict() if session else {}, indent=2, ensure_ascii=False))
    return _exit_code_for(session.stop_reason if session else StopReason.FATAL)


def _diagnose_in_browser(args: argparse.Namespace, config: Configuration) -> int:
    with sync_playwright() as pw:
        browser = pw.chromium.launch(headless=args.headless)
        try:
            page = browser.new_page()
            page.goto(args.url)
            grid = _open_grid(page, args.load_timeout)
            report = diagnose(grid, config)
        finally:
            browser.close()

    print(json.dumps(report, indent=2, ensure_ascii=False))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    argv = argv if argv is not None else sys.argv[1:]

    p = argparse.ArgumentParser(
        prog="gridauto",
        description="gridauto - row automation for virtualized web data grids",
    )
    p.add_argument("--verbose", "-V", action="store_true", help="Show debug output")
    p.add_argument("--log-file", default=None, help="Optional debug log file")
    sub = p.add_subparsers(dest="cmd", required=True)

    # -------------------------
    # run
    # -------------------------
    runp = sub.add_parser("run", help="Select the mode's label in every empty row from a starting control")
    _add_browser_args(runp)
    _add_config_args(runp)
    _add_hint_args(runp)
    runp.add_argument("--mode", "-m", default="commune", help="Automation mode (default: commune)")
    runp.add_argument("--max-duration", type=float, default=None, help="Stop after this many seconds")

    # -------------------------
    # pattern
    # -------------------------
    patp = sub.add_parser("pattern", help="Carry each row's subject forward into the following empty rows")
    _add_browser_args(patp)
    _add_config_args(patp)
    _add_hint_args(patp)
    patp.add_argument("--max-duration", type=float, default=None, help="Stop after this many seconds")

    # -------------------------
    # diagnose
    # -------------------------
    diagp = sub.add_parser("diagnose", help="Report selects, subject selects and row states on the page")
    _add_browser_args(diagp)
    _add_config_args(diagp)

    # -------------------------
    # validate
    # -------------------------
    valp = sub.add_parser("validate", help="Validate a settings file")
    valp.add_argument("--config", "-c", required=True, help="Path to settings.yaml")

    # -------------------------
    # presets
    # -------------------------
    sub.add_parser("presets", help="Print speed presets as JSON")

    args = p.parse_args(argv)
    setup_logging(
        console_level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=Path(args.log_file) if args.log_file else None,
    )
    try:
        _configure_action_logger_from_env()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.cmd == "presets":
        print(json.dumps(available_presets(), indent=2))
        return EXIT_OK

    if args.cmd == "validate":
        try:
            config = load_settings(args.config)
        except ConfigError as e:
            print(f"X Settings file is invalid: {e}", file=sys.stderr)
            return EXIT_USAGE
        print(f"+ Settings file is valid: {args.config}")
        print(f"  - Delays: {config.delay_between_actions}s / {config.delay_between_cycles}s")
        print(f"  - Modes: {', '.join(sorted(config.modes))}")
        return EXIT_OK

    try:
        config = _build_config(args)
        hint = _build_hint(args, config) if args.cmd in ("run", "pattern") else None
    except ConfigError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_USAGE

    if not PLAYWRIGHT_AVAILABLE:
        print("ERROR: Browser automation requires additional dependencies.", file=sys.stderr)
        print("Install with: pip install gridauto[browser] && playwright install chromium", file=sys.stderr)
        return EXIT_USAGE

    if args.cmd == "diagnose":
        return _diagnose_in_browser(args, config)

    try:
        return _run_in_browser(args, config, hint, pattern=args.cmd == "pattern")
    except KeyboardInterrupt:
        print("\nAutomation interrupted by user.")
        return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
