"""CLI for running morphlens extraction on text from arguments or stdin."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from morphlens.analyzer import MorphAnalyzer
from morphlens.config import Settings
from morphlens.tagger import TaggerError

_COMMANDS = ("nouns", "keywords", "counts", "similarity")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract nouns, keywords or similarity from Korean text")
    parser.add_argument("command", choices=_COMMANDS, help="Operation to run")
    parser.add_argument(
        "texts",
        nargs="*",
        help="Input text (read from stdin when omitted; similarity takes two texts)",
    )
    parser.add_argument(
        "--dictionary",
        dest="dictionary_path",
        help="mecab-ko-dic directory (defaults to MECAB_DICTIONARY_PATH)",
    )
    parser.add_argument("-n", type=int, default=None, help="Maximum number of keywords")
    return parser


async def _run(analyzer: MorphAnalyzer, command: str, texts: list[str], limit: int | None):
    if command == "nouns":
        return await analyzer.extract_nouns(texts[0])
    if command == "keywords":
        return await analyzer.extract_keywords(texts[0], n=limit)
    if command == "counts":
        counts = await analyzer.extract_sorted_noun_counts(texts[0])
        return [item.to_dict() for item in counts]
    return {"score": await analyzer.get_dice_coefficient_by_string(texts[0], texts[1])}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    texts = list(args.texts) or [sys.stdin.read()]
    if args.command == "similarity" and len(texts) != 2:
        parser.error("similarity requires exactly two texts")
    if args.command != "similarity" and len(texts) != 1:
        parser.error(f"{args.command} takes a single text")
    if args.n is not None and args.n < 0:
        parser.error("-n must be zero or positive")

    settings = Settings.from_env()
    if args.dictionary_path:
        settings.dictionary_path = args.dictionary_path

    try:
        analyzer = MorphAnalyzer.from_settings(settings)
    except TaggerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    try:
        result = asyncio.run(_run(analyzer, args.command, texts, args.n))
    except TaggerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        analyzer.close()

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
