"""Write the telemetry-tracker JSON Schemas to a directory."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from telemetry_tracker.schemas import generate_schema, list_schemas


def schema_to_json(schema: Dict[str, Any]) -> str:
    """Serialize schema to deterministic JSON string with trailing newline."""
    return json.dumps(schema, indent=2, sort_keys=True) + "\n"


def generate_all_schemas() -> Dict[str, Dict[str, Any]]:
    return {name: generate_schema(name) for name in list_schemas()}


def write_all_schemas(output_dir: Path) -> List[Path]:
    """Write ``{name}.schema.json`` for every schema; returns the paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, schema in generate_all_schemas().items():
        path = output_dir / f"{name}.schema.json"
        path.write_text(schema_to_json(schema), encoding="utf-8")
        print(f"Generated {path}")
        written.append(path)
    return written


def check_drift(output_dir: Path) -> int:
    """Compare files in ``output_dir`` with freshly generated schemas.

    Returns:
        0 if all schemas match, 1 if any are missing or differ
    """
    drift_detected = False
    for name, schema in generate_all_schemas().items():
        path = output_dir / f"{name}.schema.json"
        if not path.exists():
            print(f"ERROR: Missing schema file: {path}", file=sys.stderr)
            drift_detected = True
            continue
        if path.read_text(encoding="utf-8") != schema_to_json(schema):
            print(f"ERROR: Schema drift detected in {path}", file=sys.stderr)
            drift_detected = True

    if drift_detected:
        print("\nSchema drift detected. Run without --check to regenerate.", file=sys.stderr)
        return 1
    print(f"All {len(list_schemas())} schemas are up to date.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate JSON schemas for telemetry-tracker models"
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("schemas"),
        help="Directory to write *.schema.json files into (default: ./schemas)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Check for schema drift without writing files (CI mode)",
    )
    args = parser.parse_args(argv)

    if args.check:
        return check_drift(args.output_dir)

    written = write_all_schemas(args.output_dir)
    print(f"\nSuccessfully generated {len(written)} schemas.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
