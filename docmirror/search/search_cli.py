"""Interactive search over a mirrored collection.

Each input line is either a raw JSON request body, sent as is, or free text
wrapped into a ``query_string`` query.
"""

from __future__ import annotations

import argparse
import json
import logging

from docmirror.common.client import connect
from docmirror.common.entities import IndexTarget
from docmirror.common.settings import settings
from docmirror.search.facade import SearchFacade


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive search over a mirrored index.")
    parser.add_argument("--index-name", required=True, help="Elasticsearch index name")
    parser.add_argument("--es-hosts", nargs="+", default=[settings.es_host], help="Elasticsearch hosts")
    parser.add_argument("--size", type=int, default=5, help="Hits displayed per query")
    return parser.parse_args(argv)


def _body(line: str) -> dict:
    if line.startswith("{"):
        return json.loads(line)
    return {"query": {"query_string": {"query": line}}}


def _print_hit(rank: int, hit: dict) -> None:
    score = hit.get("_score")
    print(f"{rank}. {hit.get('_id')} (score: {score})")
    print(f"   {json.dumps(hit.get('_source', {}), ensure_ascii=False)}")


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.WARNING)
    args = _parse_args(argv)
    facade = SearchFacade(
        connect(args.es_hosts),
        IndexTarget(index_name=args.index_name, type_name="_doc"),
    )

    while True:
        try:
            line = input("query> ").strip()
        except (KeyboardInterrupt, EOFError):
            print()
            break
        if not line or line.lower() in {"exit", "quit"}:
            break

        try:
            body = _body(line)
        except json.JSONDecodeError as exc:
            print(f"Invalid JSON body: {exc}\n")
            continue

        res = facade.search(body, limit=args.size)
        hits = res.get("hits", {}).get("hits", [])
        if not hits:
            print("No matches\n")
            continue
        for i, hit in enumerate(hits, 1):
            _print_hit(i, hit)
        print()


if __name__ == "__main__":
    main()
