"""Command line runner: evaluate one submission and print the decision."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from formshield.config.settings import load_config
from formshield.orchestrator.pipeline import create_engine
from formshield.providers.stub import StubClassifier


def run_once(raw_submission: str, *, config_path: str | None = None, use_stub: bool = False) -> str:
    config, _ = load_config(config_path)
    classifiers = [StubClassifier()] if use_stub else []
    engine = create_engine(config, classifiers=classifiers)
    decision = asyncio.run(engine.evaluate(json.loads(raw_submission)))
    return decision.model_dump_json()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="formshield")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--json", help="Submission as a JSON object.")
    source.add_argument("--file", help="Path to a JSON file holding one submission.")
    parser.add_argument("--config", help="YAML config merged over the packaged defaults.")
    parser.add_argument("--stub", action="store_true", help="Register a local stub classifier with id 'stub'.")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level, e.g. INFO or DEBUG.")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    raw = args.json if args.json is not None else Path(args.file).read_text(encoding="utf-8")
    print(run_once(raw, config_path=args.config, use_stub=args.stub))
