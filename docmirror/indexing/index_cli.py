"""index_cli.py
Command-line entry point for compiling a schema into an Elasticsearch mapping.

The schema is read from a JSON file holding a serialized
:class:`docmirror.common.entities.SchemaDescriptor`::

    python -m docmirror.indexing.index_cli mapping --schema books.json
    python -m docmirror.indexing.index_cli apply --schema books.json --es-hosts http://localhost:9200
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from docmirror.common.client import connect
from docmirror.common.entities import IndexTarget, SchemaDescriptor
from docmirror.common.settings import settings
from docmirror.indexing.index_manager import IndexManager
from docmirror.indexing.mappings import compile_mapping


def load_schema(path: Path) -> SchemaDescriptor:
    return SchemaDescriptor.model_validate_json(path.read_text(encoding="utf-8"))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compile a record schema into an Elasticsearch mapping.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("mapping", "Print the compiled mapping"),
        ("apply", "Create the index if needed and apply the mapping"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument(
            "--schema", type=Path, required=True, help="Path to the schema JSON file"
        )
        cmd.add_argument("--index-name", type=str, default=None, help="Index name")
        cmd.add_argument("--type-name", type=str, default=None, help="Type name")

    sub.choices["apply"].add_argument(
        "--es-hosts",
        nargs="+",
        default=[settings.es_host],
        help="One or more Elasticsearch hosts",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:  # noqa: D401
    """Parse CLI options and print or apply the mapping."""

    logging.basicConfig(level=logging.INFO)
    args = _parse_args(argv)
    schema = load_schema(args.schema)
    mapping = compile_mapping(schema)

    if args.command == "mapping":
        print(json.dumps({"properties": mapping}, indent=2, ensure_ascii=False))
        return

    target = IndexTarget.resolve(schema.collection, args.index_name, args.type_name)
    manager = IndexManager(connect(args.es_hosts), target)
    resp = manager.apply_mapping(mapping)
    print(json.dumps(dict(resp), ensure_ascii=False))


if __name__ == "__main__":
    main()
