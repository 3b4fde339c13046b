"""
main.py - CLI orchestration for the receipt export engine.

This module is orchestration-only:
1. load receipts (JSON or CSV from the OCR step)
2. merge user defaults
3. validate
4. generate the import CSV
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from pydantic import ValidationError

import config
from defaults import apply_export_defaults
from export import ExportNotReadyError, export_receipts
from logging_config import get_logger, setup_logging
from models import ExportDefaults, ReadinessReport, Receipt
from normalize import normalize_receipt_payload
from validate import validate_export_data

logger = get_logger("receipt-export")

SUPPORTED_INPUT_SUFFIXES = {".json", ".csv"}
EXIT_NOT_READY = 2


def _check_path(path: Optional[str], label: str) -> Path:
    if path is None or not str(path).strip():
        raise ValueError(f"{label} path cannot be empty")
    resolved = Path(str(path).strip())
    if not resolved.exists():
        raise FileNotFoundError(f"{label} file not found: {resolved}")
    return resolved


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse JSON '{path}': {exc}") from exc


def _raw_records(path: Path) -> list[dict[str, Any]]:
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_INPUT_SUFFIXES:
        raise ValueError(
            f"Unsupported receipts file type '{suffix}'. "
            f"Use one of: {sorted(SUPPORTED_INPUT_SUFFIXES)}"
        )

    if suffix == ".csv":
        try:
            df = pd.read_csv(path, dtype=str, encoding="utf-8-sig")
        except UnicodeDecodeError:
            logger.warning(
                "csv_encoding_warning | path=%s | reason='utf-8 decode failed' | fallback=latin-1",
                path,
            )
            df = pd.read_csv(path, dtype=str, encoding="latin-1")
        except Exception as exc:
            raise ValueError(f"Failed to read CSV '{path}': {exc}") from exc

        df.columns = [str(col).strip() for col in df.columns]
        df = df.dropna(how="all")
        return df.to_dict(orient="records")

    payload = _read_json(path)
    if isinstance(payload, dict):
        payload = payload.get("receipts")
    if not isinstance(payload, list):
        raise ValueError(
            f"Receipts JSON must be a list or an object with a 'receipts' list: {path}"
        )
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ValueError(f"Receipt #{index + 1} in {path} is not a JSON object")
    return payload


def load_receipts(receipts_path: str) -> list[Receipt]:
    """Load, normalize, and validate the shape of receipt records from a file."""
    path = _check_path(receipts_path, "Receipts")
    raw_records = _raw_records(path)

    receipts: list[Receipt] = []
    for index, raw in enumerate(raw_records):
        try:
            receipts.append(Receipt.model_validate(normalize_receipt_payload(raw)))
        except ValidationError as exc:
            raise ValueError(f"Receipt #{index + 1} in {path} is malformed: {exc}") from exc

    logger.info("receipts_loaded | path=%s | count=%s", path, len(receipts))
    return receipts


def load_defaults(defaults_path: Optional[str]) -> Optional[ExportDefaults]:
    """Load user export defaults from a JSON object file (None when no path)."""
    if not defaults_path:
        return None
    path = _check_path(defaults_path, "Defaults")
    payload = _read_json(path)
    if not isinstance(payload, dict):
        raise ValueError(f"Defaults JSON must be an object: {path}")
    try:
        return ExportDefaults.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid export defaults in {path}: {exc}") from exc


def _print_readiness(report: ReadinessReport, receipts: list[Receipt]) -> None:
    """Print the readiness summary and the missing fields per receipt."""
    print(report.summary(), file=sys.stderr)
    for index, receipt in enumerate(receipts):
        issues = report.issues_for(index)
        if issues:
            label = receipt.vendor or receipt.file_name or receipt.id
            print(f"  - {label}: missing {', '.join(issues)}", file=sys.stderr)


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for the receipt exporter."""
    parser = argparse.ArgumentParser(
        prog="receipt-export",
        description=(
            "Receipt Export Engine\n"
            "Validates OCR receipt records and writes an accounting import CSV."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s --receipts receipts.json --out export.csv\n"
            "  %(prog)s --receipts receipts.csv --defaults defaults.json --strict\n"
            "  %(prog)s --receipts receipts.json --check\n"
        ),
    )
    parser.add_argument(
        "--receipts",
        "-r",
        type=str,
        required=True,
        help="Path to receipts file (.json list or .csv with one receipt per row)",
    )
    parser.add_argument(
        "--out",
        "-o",
        type=str,
        help="Write the CSV here instead of stdout",
    )
    parser.add_argument(
        "--defaults",
        "-d",
        type=str,
        help="JSON file with default values for missing optional fields",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Refuse to export when any receipt is missing required fields",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only report export readiness, do not generate CSV",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG-level) logging",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs as JSON lines (for production/log aggregation)",
    )

    args = parser.parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else config.log_level(),
        json_format=args.log_json or config.log_json(),
    )

    try:
        receipts = load_receipts(args.receipts)
        defaults = load_defaults(args.defaults)

        if args.check:
            report = validate_export_data(apply_export_defaults(receipts, defaults))
            _print_readiness(report, receipts)
            if not report.export_ready:
                raise SystemExit(EXIT_NOT_READY)
            return

        result = export_receipts(receipts, defaults=defaults, strict=args.strict)
        if not result.report.export_ready:
            _print_readiness(result.report, receipts)

        if args.out:
            out_path = Path(args.out)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text(result.csv_text, encoding="utf-8")
            logger.info(
                "cli_export_written | path=%s | rows=%s",
                out_path,
                result.exported_count,
            )
            print(f"Exported {result.exported_count} receipt(s) to {out_path}", file=sys.stderr)
        else:
            print(result.csv_text)
    except ExportNotReadyError as exc:
        logger.error("cli_error | type=ExportNotReadyError | error=%s", exc)
        _print_readiness(exc.report, receipts)
        raise SystemExit(EXIT_NOT_READY) from exc
    except FileNotFoundError as exc:
        logger.error("cli_error | type=FileNotFoundError | error=%s", exc)
        print(f"\nError: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    except ValueError as exc:
        logger.error("cli_error | type=ValueError | error=%s", exc)
        print(f"\nError: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        raise SystemExit(130)


if __name__ == "__main__":
    main()
