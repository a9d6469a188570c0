from __future__ import annotations

import argparse
import json
import logging
import sys

from contract_rag.api import create_embedding_client, create_retrieval_tool, embed_queries, retrieve
from contract_rag.config import StackConfig
from contract_rag.errors import ContractRagError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Contract retrieval CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    sub = parser.add_subparsers(dest="cmd", required=True)

    embed_cmd = sub.add_parser("embed", help="Embed one or more queries (repeats are served from cache)")
    embed_cmd.add_argument("queries", nargs="+", help="Query text")

    retrieve_cmd = sub.add_parser("retrieve", help="Vector search + rerank over the contract collection")
    retrieve_cmd.add_argument("query", help="Search query")
    retrieve_cmd.add_argument("--json", action="store_true")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(stream=sys.stderr, level=logging.DEBUG if args.verbose else logging.ERROR)
    cfg = StackConfig()

    try:
        if args.cmd == "embed":
            with create_embedding_client(cfg) as client:
                out = embed_queries(args.queries, client)
        elif args.cmd == "retrieve":
            with create_retrieval_tool(cfg) as tool:
                text = retrieve(args.query, tool)
            if not args.json:
                print(text)
                return 0
            out = {"query": args.query, "result": text}
        else:
            raise SystemExit(f"Unknown command: {args.cmd}")
    except (ContractRagError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
