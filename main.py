"""
Command-line entry point for trying out rule templates.

    python main.py validate template.json
    python main.py check template.json attack --stat strength=14
    python main.py formula template.json damage
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv

from rpg_mechanics import (
    EvaluationError,
    RuleTemplate,
    evaluate_formula,
    initialize_character_state,
    perform_check,
    validate_template_config,
)
from rpg_mechanics.utils.logger_config import setup_logging

logger = logging.getLogger(__name__)


def parse_stat_overrides(pairs: List[str]) -> Dict[str, Any]:
    """Turn ['strength=14', 'name="Ari"'] into {'strength': 14, 'name': 'Ari'}."""
    overrides: Dict[str, Any] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Stat override must look like id=value, got '{pair}'")
        key, raw = pair.split("=", 1)
        try:
            overrides[key.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            overrides[key.strip()] = raw
    return overrides


def load_template_data(path: str) -> Dict[str, Any]:
    with open(Path(path), "r", encoding="utf-8") as f:
        return json.load(f)


def cmd_validate(args) -> int:
    result = validate_template_config(load_template_data(args.template))
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.valid else 1


def _prepare_state(args):
    data = load_template_data(args.template)
    validation = validate_template_config(data)
    if not validation.valid:
        print(json.dumps(validation.to_dict(), indent=2))
        return None, None
    template = RuleTemplate.from_dict(data)
    state = initialize_character_state(args.template_id or Path(args.template).stem, template)
    state.stats.update(parse_stat_overrides(args.stat))
    return template, state


def cmd_check(args) -> int:
    template, state = _prepare_state(args)
    if template is None:
        return 1
    check = template.get_check(args.check_id)
    if check is None:
        logger.error(f"Check '{args.check_id}' not found in template")
        return 1
    try:
        result = perform_check(check, state)
    except EvaluationError as e:
        print(str(e), file=sys.stderr)
        return 2
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def cmd_formula(args) -> int:
    template, state = _prepare_state(args)
    if template is None:
        return 1
    formula = template.get_formula(args.formula_id)
    if formula is None:
        logger.error(f"Formula '{args.formula_id}' not found in template")
        return 1
    try:
        result = evaluate_formula(formula, state)
    except EvaluationError as e:
        print(str(e), file=sys.stderr)
        return 2
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate rule templates and resolve checks.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Validate a template JSON file.")
    validate_parser.add_argument("template", help="Path to the template JSON file.")
    validate_parser.set_defaults(func=cmd_validate)

    for name, target, func in (
        ("check", "check_id", cmd_check),
        ("formula", "formula_id", cmd_formula),
    ):
        sub = subparsers.add_parser(name, help=f"Resolve a {name} against a fresh character.")
        sub.add_argument("template", help="Path to the template JSON file.")
        sub.add_argument(target, help=f"ID of the {name} to run.")
        sub.add_argument(
            "--stat",
            action="append",
            default=[],
            metavar="ID=VALUE",
            help="Override a stat's starting value (repeatable).",
        )
        sub.add_argument("--template-id", default=None, help="Template ID recorded in the state.")
        sub.set_defaults(func=func)

    return parser


def main(argv=None) -> int:
    load_dotenv()
    setup_logging()
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (OSError, json.JSONDecodeError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
