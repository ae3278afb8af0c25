"""
VizAI: AI-assisted chart configuration, CLI entry point.

Usage:
    python vizai.py [csv_file] [-i IMAGE] [-p PROMPT] [-o OUTPUT]
    python vizai.py [csv_file] --config prev.json -r "make the bars red"
    python vizai.py [csv_file] --interactive

Loads a CSV (or the built-in Titanic sample), asks the configured AI
provider for a chart configuration plus equivalent R and Python code,
and renders the chart to a PNG/SVG/PDF (matplotlib) or an .xlsx with a
native Excel chart (openpyxl).
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import dotenv
from pydantic import ValidationError

from dto.state import ActiveTab
from dto.visualization import VisualizationConfig
from errors import DataParseError
from session import VizSession

dotenv.load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Config files
# -------------------------------------------------------------------


def _load_config(path: str) -> VisualizationConfig:
    with open(path, "r", encoding="utf-8") as f:
        return VisualizationConfig.model_validate(json.load(f))


def _save_config(config: VisualizationConfig, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_payload(), f, indent=2)
    logger.info("Config written to %s", path)


# -------------------------------------------------------------------
# Interactive mode
# -------------------------------------------------------------------

_HELP = """Commands:
  :load PATH        load a CSV file
  :image PATH       set a reference chart image
  :noimage          drop the reference image
  :tab chart|r|python
  :render PATH      write the current chart (.png/.svg/.pdf/.xlsx)
  :save PATH        write the current config as JSON
  :help             show this help
  :quit             exit
Anything else is an instruction and triggers generation."""


def _show(session: VizSession) -> None:
    print(session.panel_text())


def _handle_command(session: VizSession, line: str) -> bool:
    """Run one ':' command.  Returns False when the loop should stop."""
    cmd, _, arg = line[1:].partition(" ")
    arg = arg.strip()

    if cmd in ("quit", "q", "exit"):
        return False
    if cmd == "help":
        print(_HELP)
    elif cmd == "load":
        try:
            state = session.upload_csv(arg)
            print(f"{state.dataset.name}: {state.dataset.summary()}")
        except DataParseError:
            logger.exception("Failed to parse CSV")
            print("Failed to parse CSV")
    elif cmd == "image":
        try:
            session.upload_image(arg)
            print(f"Reference image set: {arg}")
        except OSError:
            logger.exception("Failed to read image")
            print("Failed to read image")
    elif cmd == "noimage":
        session.clear_image()
    elif cmd == "tab":
        try:
            session.select_tab(arg)
            _show(session)
        except ValueError:
            print("Tabs: chart, r, python")
    elif cmd == "render":
        if arg:
            try:
                session.render_chart(arg)
            except (ValueError, OSError):
                logger.exception("Failed to render chart to %s", arg)
                print(f"Could not write chart to {arg}")
    elif cmd == "save":
        if session.state.config is not None and arg:
            try:
                _save_config(session.state.config, arg)
            except OSError:
                logger.exception("Failed to save config to %s", arg)
                print(f"Could not write config to {arg}")
    else:
        print(f"Unknown command :{cmd}  (:help for a list)")
    return True


def run_interactive(session: VizSession) -> None:
    state = session.state
    print(f"{state.dataset.name}: {state.dataset.summary()}")
    print(_HELP)
    while True:
        try:
            line = input("vizai> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not line:
            continue
        if line.startswith(":"):
            if not _handle_command(session, line):
                break
            continue

        session.set_prompt(line)
        if session.generate():
            _show(session)
        elif session.state.error_message:
            print(session.state.error_message)


# -------------------------------------------------------------------
# CLI
# -------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a chart configuration (and R / Python code) for a CSV with an AI model.",
    )
    parser.add_argument(
        "csv_file",
        nargs="?",
        default=None,
        help="Path to the CSV file (default: built-in Titanic sample)",
    )
    parser.add_argument(
        "-i",
        "--image",
        default=None,
        help="Reference chart image whose style the AI should follow",
    )
    parser.add_argument(
        "-p",
        "--prompt",
        default="",
        help="Free-text instruction for a new visualization",
    )
    parser.add_argument(
        "-r",
        "--refine",
        default=None,
        help="Instruction to refine the config given with --config",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Previously saved config JSON to start from",
    )
    parser.add_argument(
        "--save-config",
        default=None,
        help="Write the resulting config JSON to this path",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Chart output path; .xlsx writes a native Excel chart (default: <input_name>_chart.png)",
    )
    parser.add_argument(
        "--show",
        choices=[t.value for t in ActiveTab],
        default=ActiveTab.CHART.value,
        help="Panel to print when done (default: chart)",
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Start an interactive prompt loop",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    session = VizSession()

    if args.csv_file:
        if not os.path.isfile(args.csv_file):
            logger.error("File not found: %s", args.csv_file)
            return 1
        try:
            session.upload_csv(args.csv_file)
        except DataParseError:
            logger.exception("Failed to parse CSV")
            return 1
    else:
        session.start()

    if args.config:
        try:
            session.restore_config(_load_config(args.config))
        except (OSError, ValueError, ValidationError):
            logger.exception("Could not load config %s", args.config)
            return 1

    if args.image:
        try:
            session.upload_image(args.image)
        except OSError:
            logger.exception("Could not read image %s", args.image)
            return 1

    if args.interactive:
        run_interactive(session)
        return 0

    if args.refine:
        if session.state.config is None:
            logger.error("--refine needs a config to start from (--config)")
            return 1
        if args.image:
            logger.warning("A reference image is set, generating from scratch instead of refining")
        session.set_prompt(args.refine)
    else:
        session.set_prompt(args.prompt)

    if not session.generate():
        logger.error(session.state.error_message or "Generation did not run")
        return 1

    config = session.state.config
    if args.save_config:
        try:
            _save_config(config, args.save_config)
        except OSError:
            logger.exception("Could not write config %s", args.save_config)
            return 1

    output_path = args.output
    if output_path is None:
        stem = Path(args.csv_file).stem if args.csv_file else "titanic"
        output_path = f"{stem}_chart.png"
    try:
        session.render_chart(output_path)
    except (ValueError, OSError):
        logger.exception("Could not write chart %s", output_path)
        return 1

    session.select_tab(args.show)
    print(session.panel_text())
    return 0


if __name__ == "__main__":
    sys.exit(main())
