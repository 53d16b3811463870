"""Command-line host for the dataset preparation dispatcher.

Usage (examples):
    python -m clusterprep.cli path/to/file.csv
    python -m clusterprep.cli path/to/file.json --operation normalize --config '{"columns": ["x"]}'
    python -m clusterprep.cli path/to/file.csv --operation run_pipeline --config pipeline.json --json

The file is parsed first (JSON for .json files, tab-delimited for .tsv, CSV
otherwise); the selected operation then runs on the parsed records. The CLI
prints a concise summary by default; use --json for the full terminal message.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from .dispatcher import HANDLERS, Message, handle_request

_PARSE_OPERATIONS = ("parse_csv", "parse_structured")


def _load_config(value: str | None) -> Dict[str, Any]:
    if not value:
        return {}
    candidate = Path(value)
    if candidate.suffix.lower() == ".json" and candidate.exists():
        return json.loads(candidate.read_text(encoding="utf-8"))
    return json.loads(value)


def _summarize(message: Message) -> str:
    lines = [
        f"Operation: {message.get('operation')}  Status: {message.get('type')}",
    ]
    if message.get("type") == "error":
        lines.append(f"Error: {message['error']['message']}")
        return "\n".join(lines)

    result = message.get("result")
    if isinstance(result, list):
        lines.append(f"Rows: {len(result)}")
    elif isinstance(result, dict):
        if "is_valid" in result:
            lines.append(
                f"Valid: {result['is_valid']}  Rows: {result['row_count']}  Columns: {result['column_count']}"
            )
            for err in result["errors"]:
                lines.append(f"  ! {err}")
            for name, profile in list(result["statistics"].items())[:8]:
                lines.append(
                    f"  - {name}: type={profile['data_type']} missing%={profile['missing_percentage']:.2f}"
                )
            for rec in result["recommendations"]:
                lines.append(f"  [{rec['level']}] {rec['message']}")
        if "data" in result:
            lines.append(f"Rows: {len(result['data'])}")
        if "rows" in result:
            lines.append(f"Rows: {len(result['rows'])}  Parse errors: {len(result['errors'])}")
        if result.get("steps"):
            lines.append(f"Steps: {', '.join(result['steps'])}")
    return "\n".join(lines)


def _parse_request(path: Path, text: str, args: argparse.Namespace) -> Dict[str, Any]:
    if path.suffix.lower() == ".json":
        return {"operation": "parse_structured", "payload": text, "config": {}}
    delimiter = "\t" if path.suffix.lower() == ".tsv" else args.delimiter
    return {
        "operation": "parse_csv",
        "payload": text,
        "config": {
            "delimiter": delimiter,
            "hasHeader": not args.no_header,
            "generateHeaders": args.no_header,
        },
    }


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Parse a CSV/JSON file and run a dataset preparation operation on it."
    )
    parser.add_argument("file", help="Path to input CSV, TSV or JSON file")
    parser.add_argument(
        "--operation",
        choices=[op for op in HANDLERS if op not in _PARSE_OPERATIONS],
        default="validate",
        help="Operation to run on the parsed records (default: validate)",
    )
    parser.add_argument(
        "--config",
        help="Operation config as a JSON string or a path to a .json file",
    )
    parser.add_argument(
        "--delimiter", default=",", help="CSV field delimiter (default: ',')"
    )
    parser.add_argument(
        "--no-header",
        action="store_true",
        help="First line is data; columns are named Column_1..Column_N.",
    )
    parser.add_argument(
        "--correlation-id", default="cli", help="Correlation id for the request"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full terminal message as JSON (in addition to summary)",
    )
    parser.add_argument(
        "--output",
        help="Optional path to write the full terminal message (pretty-printed)",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.file)
    if not path.exists():
        raise SystemExit(f"File not found: {path}")
    text = path.read_text(encoding="utf-8")

    parse_request = _parse_request(path, text, args)
    parse_request["correlationId"] = args.correlation_id
    parsed = handle_request(parse_request)[-1]
    if parsed["type"] == "error" or (
        parsed["result"]["errors"] and not parsed["result"]["rows"]
    ):
        print(_summarize(parsed))
        return 1

    message = handle_request(
        {
            "operation": args.operation,
            "payload": parsed["result"]["rows"],
            "config": _load_config(args.config),
            "correlationId": args.correlation_id,
        }
    )[-1]

    print(_summarize(message))

    if args.json:
        print("\n=== JSON Payload ===")
        print(json.dumps(message, indent=2, default=str))

    if args.output:
        out_path = Path(args.output)
        out_path.write_text(json.dumps(message, indent=2, default=str), encoding="utf-8")
        print(f"\nSaved JSON payload to {out_path}")

    return 0 if message["type"] == "complete" else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
