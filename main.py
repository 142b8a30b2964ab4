"""
Food Safety Eye command line.

Usage:
    python main.py analyze --text "aspartame, water" --language en
    python main.py analyze --barcode 4710088412345 --language zh
    python main.py additives --risk-level harmful
    python main.py build-kb --csv data/tw-additives-source.csv --overrides data/tw-additives-overrides.json
"""

import argparse
import asyncio
import json
import logging
import sys

import config
from core.service import build_service, error_result
from ingredient_risk.errors import IngredientRiskError
from ingredient_risk.knowledge_base.loader import load_knowledge_base
from ingredient_risk.models import AnalyzeRequest

logger = logging.getLogger(__name__)


def _print_json(payload):
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def cmd_analyze(args) -> int:
    if not args.text and not args.barcode:
        print("Error: provide --text or --barcode")
        return 2

    request = AnalyzeRequest(ingredient_text=args.text, barcode=args.barcode, language=args.language)
    try:
        service = build_service()
        result = asyncio.run(service.analyze(request))
    except IngredientRiskError as e:
        logger.error("Analysis failed: %s", e)
        _print_json(error_result(e, args.language).model_dump(by_alias=True))
        return 1

    _print_json(result.model_dump(mode="json", by_alias=True))
    return 0


def cmd_additives(args) -> int:
    try:
        kb = load_knowledge_base(config.KNOWLEDGE_BASE_PATH)
    except IngredientRiskError as e:
        logger.error("Knowledge base failed to load: %s", e)
        return 1

    for record in kb:
        if args.risk_level and record.risk_level != args.risk_level:
            continue
        name = record.display_name(args.language)
        e_number = f" ({record.e_number})" if record.e_number else ""
        print(f"{record.risk_level:<9} {record.child_risk:<7} {name}{e_number}")
    return 0


def cmd_build_kb(args) -> int:
    from scripts.build_tw_additives import build

    try:
        count = build(args.csv, args.overrides, args.curated, args.out)
    except (IngredientRiskError, OSError, ValueError) as e:
        # ValueError covers pandas parser errors and malformed JSON
        logger.error("Refusing to write knowledge base: %s", e)
        return 1
    print(f"Wrote {count} additives to {args.out}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Ingredient risk analysis against the Taiwan food additive knowledge base",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    analyze = subparsers.add_parser('analyze', help='Analyze an ingredient list or barcode')
    analyze.add_argument('--text', type=str, help='Ingredient text')
    analyze.add_argument('--barcode', type=str, help='Product barcode')
    analyze.add_argument('--language', choices=['en', 'zh'], default='en')
    analyze.set_defaults(func=cmd_analyze)

    additives = subparsers.add_parser('additives', help='List knowledge base records')
    additives.add_argument('--risk-level', choices=['healthy', 'low', 'moderate', 'harmful'])
    additives.add_argument('--language', choices=['en', 'zh'], default='en')
    additives.set_defaults(func=cmd_additives)

    build_kb = subparsers.add_parser('build-kb', help='Merge the Taiwan FDA CSV into the knowledge base')
    build_kb.add_argument('--csv', type=str, help='Official additive CSV')
    build_kb.add_argument('--overrides', type=str, help='Override annotations (JSON)')
    build_kb.add_argument('--curated', type=str, default=str(config.KNOWLEDGE_BASE_PATH))
    build_kb.add_argument('--out', type=str, default=str(config.KNOWLEDGE_BASE_PATH))
    build_kb.set_defaults(func=cmd_build_kb)

    args = parser.parse_args(argv)
    config.setup_logging("DEBUG" if args.verbose else None)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
