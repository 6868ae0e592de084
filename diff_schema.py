#!/usr/bin/env python3
"""Compare a source and a target MySQL schema and write the SQL that migrates the target.

Usage:
    diff-schema -d file -s source.sql -t target.sql -o alters.sql
    diff-schema -d db -s user:pass@host:3306~app -t user:pass@host~app_old -o alters.sql
    diff-schema -c diff.yaml [overrides...]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import yaml

from schema_compare import compare_schemas, render_script
from schema_loader import LOADERS, SchemaLoadError, load_schema, parse_schema

__version__ = "1.1.1"

REQUIRED_KEYS = ("data", "source", "target", "output")


class ConfigError(ValueError):
    """Invalid or incomplete run configuration."""


def load_config(path: Path) -> dict:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"config {path} must be a mapping")
    return raw


def resolve_config(args: argparse.Namespace) -> dict:
    """Merge the optional YAML file with command-line flags (flags win) and validate."""
    config = load_config(Path(args.config)) if args.config else {}

    for key in REQUIRED_KEYS:
        value = getattr(args, key)
        if value is not None:
            config[key] = value

    missing = [key for key in REQUIRED_KEYS if not config.get(key)]
    if missing:
        raise ConfigError("missing required input(s): " + ", ".join(missing))
    for key in REQUIRED_KEYS:
        config[key] = str(config[key])

    if config["data"] not in LOADERS:
        raise ConfigError(f"invalid data source: {config['data']!r} (expected 'file' or 'db')")

    excluded = config.get("exclude_tables") or []
    if not isinstance(excluded, list):
        raise ConfigError("exclude_tables must be a list of table names")
    config["exclude_tables"] = [str(name) for name in excluded]
    return config


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def generate_output(config: dict) -> str:
    excluded = set(config.get("exclude_tables", []))
    snapshots = {}
    for role in ("source", "target"):
        print(f"Loading {role} schema from {config['data']}: {config[role]}", file=sys.stderr)
        raw = load_schema(config["data"], config[role])
        raw = {name: sql for name, sql in raw.items() if name not in excluded}
        snapshots[role] = parse_schema(raw)
        print(f"  {len(snapshots[role])} tables", file=sys.stderr)

    diff = compare_schemas(snapshots["source"], snapshots["target"])
    print(
        f"Diff: {len(diff.added)} added, {len(diff.dropped)} dropped, {len(diff.modified)} modified",
        file=sys.stderr,
    )
    return render_script(diff)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="diff-schema", description="Compare database schemas")
    parser.add_argument("-d", "--data", help="Data source type: 'file' or 'db'")
    parser.add_argument("-s", "--source", help="Source schema (file path or db connection)")
    parser.add_argument("-t", "--target", help="Target schema (file path or db connection)")
    parser.add_argument("-o", "--output", help="Output SQL file")
    parser.add_argument("-c", "--config", help="YAML file providing any of the inputs above plus exclude_tables")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = resolve_config(args)
        output = generate_output(config)
    except (ConfigError, SchemaLoadError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    out_path = Path(config["output"])
    try:
        write_text(out_path, output)
    except OSError as exc:
        print(f"error: cannot write {out_path}: {exc}", file=sys.stderr)
        return 1
    print(f"Generated {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
