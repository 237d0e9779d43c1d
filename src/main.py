"""Command-line entry point: compile one query and print it as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from src.app import create_app
from src.config.logging import configure_logging
from src.config.settings import load_settings
from src.intent.compiler import compile_constraints
from src.intent.tokenizer import parse_search_intent
from src.knowledge.base import KnowledgeBaseError

logger = logging.getLogger(__name__)

MODES = ("unified", "tokens", "constraints")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dietq",
        description="Compile a free-form dietary search query into structured goals.",
    )
    parser.add_argument("query", help="Query text, e.g. 'high protein no sodium vegan'.")
    parser.add_argument(
        "--diet",
        action="append",
        default=None,
        metavar="NAME",
        help="Extra diet name known to the catalog (repeatable). Overrides AVAILABLE_DIETS.",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default="unified",
        help="unified: both parsers merged; tokens: tokenizer only; constraints: candidate path.",
    )
    return parser


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""

    args = build_parser().parse_args(argv)

    load_dotenv(".env")
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        app = create_app(settings)
    except (RuntimeError, KnowledgeBaseError) as exc:
        print(f"dietq: {exc}", file=sys.stderr)
        return 2

    diets = frozenset(args.diet) if args.diet is not None else settings.available_diets

    if args.mode == "constraints":
        result = compile_constraints(args.query, app.knowledge_base)
    elif args.mode == "tokens":
        result = parse_search_intent(args.query, app.knowledge_base, diets)
    else:
        result = app.compile(args.query, diets)

    logger.debug("compiled %r in %s mode", args.query, args.mode)
    print(json.dumps(result.model_dump(mode="json"), indent=2, sort_keys=True))
    return 0


def main() -> None:
    """Console script entry point."""

    sys.exit(run())


if __name__ == "__main__":
    main()
