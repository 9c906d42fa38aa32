from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import AppConfig, ConfigError, load_config
from ..errors import InvalidMappingError
from ..logging.init import enable_debug, log_summary, setup_logging
from ..models.field_schema import get_field
from ..models.mapping import FieldSelection
from ..services.collaborators import FileFilter
from ..services.mapping_builder import parse_column_ref, selections_from_preset
from ..services.session import ImportSession
from ..services.summary import render_summary_line
from ..services.workbook_backend import WorkbookBackend

"""CLI entrypoint.

Drives one ImportSession over the local workbook backend:
- select the input file (answering the open dialog from the arguments)
- apply the mapping from --map options, or the config preset
- export and print the SUMMARY line
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_UNRESOLVED_VALUES = 2


class ArgumentDialogs:
    """DialogService answering from command line arguments instead of a GUI."""

    def __init__(self, open_path: str, save_path: str | None = None) -> None:
        self.open_path = open_path
        self.save_path = save_path

    def select_open_path(self, filters: tuple[FileFilter, ...]) -> str | None:
        if filters and not any(f.matches(self.open_path) for f in filters):
            logging.getLogger(__name__).warning(
                "input %s does not match %s", self.open_path, [f.name for f in filters]
            )
        return self.open_path

    def select_save_path(self, default_name: str, filters: tuple[FileFilter, ...]) -> str | None:
        return self.save_path or default_name


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env (SHEET_ORDERS_CONFIG etc.) using python-dotenv."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def parse_map_option(text: str) -> tuple[str, FieldSelection]:
    """Parse ``FIELD=COLS[:OP]``, e.g. ``quantity=F,G:multiply``.

    Columns are letter codes or zero-based indices separated by commas.
    """
    key, sep, rest = text.partition("=")
    key = key.strip()
    if not sep or not key or not rest.strip():
        raise ValueError(f"expected FIELD=COLS[:OP], got {text!r}")
    try:
        get_field(key)
    except KeyError as e:
        raise ValueError(f"unknown field: {key!r}") from e
    cols_text, _, op = rest.partition(":")
    indices = tuple(
        parse_column_ref(key, part.strip()) for part in cols_text.split(",") if part.strip()
    )
    return key, FieldSelection(chosen_indices=indices, chosen_operation=op.strip() or None)


def _selections(options: list[str], cfg: AppConfig) -> dict[str, FieldSelection]:
    if not options:
        return selections_from_preset(cfg.mapping_preset)
    selections: dict[str, FieldSelection] = {}
    for option in options:
        key, selection = parse_map_option(option)
        if key in selections:
            raise ValueError(f"field mapped twice: {key}")
        selections[key] = selection
    return selections


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="sheet-orders",
        description="Map an order spreadsheet onto the shipping import template",
    )
    p.add_argument("input", help="source .xlsx file")
    p.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="FIELD=COLS[:OP]",
        help="map a field to columns, e.g. recipient_name=A or quantity=F,G:multiply",
    )
    p.add_argument("--output", help="output .xlsx path (default: config output.default_name)")
    p.add_argument("--inspect-columns", action="store_true", help="print the header columns and exit")
    p.add_argument("--config", type=Path, help="config YAML path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


async def _run(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    backend = WorkbookBackend(sheet_name=cfg.sheet_name)
    session = ImportSession(
        backend,
        dialogs=ArgumentDialogs(args.input, args.output),
        open_filters=cfg.open_filters,
        save_filters=cfg.save_filters,
        default_output_name=cfg.default_output_name,
    )
    start = time.perf_counter()

    if not await session.choose_file():
        return EXIT_FATAL

    if not session.columns:
        logger.error(f"no header columns found in {args.input}")
        return EXIT_FATAL

    if args.inspect_columns:
        for column in session.columns:
            print(f"{column.index}\t{column.code}\t{column.title}")
        return EXIT_SUCCESS

    try:
        selections = _selections(args.map, cfg)
    except (ValueError, InvalidMappingError) as e:
        logger.error(f"mapping: {e}")
        return EXIT_FATAL
    if not any(s.chosen_indices for s in selections.values()):
        logger.error("mapping: no columns mapped (use --map or mapping_preset)")
        return EXIT_FATAL

    if not await session.apply_mapping(selections):
        return EXIT_FATAL

    if not await session.choose_export_path():
        return EXIT_FATAL

    result = session.result
    if result is None:
        return EXIT_FATAL
    log_summary(render_summary_line(result, time.perf_counter() - start)[len("SUMMARY "):])
    if result.unresolved_count:
        return EXIT_UNRESOLVED_VALUES
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # 仅在 None 时读取 sys.argv (测试会直接调用 main([...]))
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        enable_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    return asyncio.run(_run(args, cfg, logger))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
