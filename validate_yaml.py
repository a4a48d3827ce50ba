#!/usr/bin/env python3
"""Validate organization data files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import Draft202012Validator

from models.records import load_schema, normalize


def validate_data_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single organization YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return [f"YAML parse error: {e}"]
    except OSError as e:
        return [f"Error: {e}"]

    # Unquoted YAML dates load as date objects; the schema expects ISO strings
    data = normalize(data)

    validator = Draft202012Validator(schema, format_checker=Draft202012Validator.FORMAT_CHECKER)
    for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path]):
        errors.append(f"Schema validation error: {error.message}")
        if error.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in error.path)}")

    org_id = (data.get("organization") or {}).get("id") if isinstance(data, dict) else None
    if org_id and org_id != filepath.stem:
        errors.append(f"Organization id '{org_id}' does not match file name '{filepath.stem}'")
    return errors


def main(argv=None):
    """Validate all organization YAML files in the data/ directory."""
    argv = sys.argv[1:] if argv is None else argv
    schema = load_schema()
    data_dir = Path(argv[0]) if argv else Path(__file__).parent / "data"

    if not data_dir.exists():
        print(f"Error: data directory not found: {data_dir}")
        return 1

    yaml_files = list(data_dir.glob("*.yaml")) + list(data_dir.glob("*.yml"))

    if not yaml_files:
        print(f"Warning: No YAML files found in {data_dir}")
        return 0

    all_valid = True
    for filepath in sorted(yaml_files):
        errors = validate_data_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
