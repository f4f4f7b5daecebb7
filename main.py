#!/usr/bin/env python3
"""
Weekly Training Program Pipeline
Main entry point for the command line.
"""

import argparse
import logging
import os
import sys

import yaml
from dotenv import load_dotenv

from program_pipeline.config import load_config
from program_pipeline.draft_validator import summarize_violations
from program_pipeline.errors import ConfigurationError, ProgramPipelineError, ValidationError
from program_pipeline.program_db import ProgramDB
from program_pipeline.program_service import build_service
from program_pipeline.program_types import Cohort, ProgramRequest, format_reps


def print_banner():
    """Print welcome banner."""
    banner = """
╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║        WEEKLY TRAINING PROGRAM PIPELINE                      ║
║        Powered by Claude AI                                  ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝
    """
    print(banner)


def load_request(path, default_unit="kg"):
    """Load a program request from a YAML file."""
    if not os.path.exists(path):
        raise ConfigurationError(f"Request file not found: {path}")
    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse {path}: {exc}") from exc

    cohort = data.get("cohort") or {}
    if not cohort.get("training_focus") or not cohort.get("experience_level"):
        raise ConfigurationError("Request cohort needs training_focus and experience_level")

    return ProgramRequest(
        user_id=data.get("user_id"),
        tier_flag=bool(data.get("paid", data.get("tier_flag", False))),
        onboarding_facts=data.get("onboarding_facts") or {},
        cohort=Cohort(
            training_focus=cohort["training_focus"],
            experience_level=cohort["experience_level"],
            days_per_week=cohort.get("days_per_week"),
            session_minutes=cohort.get("session_minutes"),
        ),
        personal_records=data.get("personal_records") or {},
        profile=data.get("profile") or {},
        unit=data.get("unit") or default_unit,
    )


def print_program(result):
    program = result.program
    print("\n" + "=" * 60)
    print(f"{program.draft.program_name or 'WEEKLY PROGRAM'} ({result.source})")
    print("=" * 60)

    for index, day in enumerate(program.draft.days, start=1):
        header = day.day_name or f"Day {index}"
        print(f"\n## {header.upper()}: {day.label}")
        for exercise in day.exercises:
            line = f"- {exercise.name}: {exercise.sets} x {format_reps(exercise.reps)}"
            if exercise.rpe is not None:
                line += f" @ RPE {exercise.rpe:g}"
            if exercise.load_text:
                line += f" | {exercise.load_text}"
            print(line)

    if result.notes:
        print("\nCorrections:")
        for note in result.notes:
            print(f"  - {note}")

    if program.advisories:
        print("\nVolume advisories:")
        for advisory in program.advisories:
            low, high = advisory.target_range
            print(f"  - {advisory.muscle_group}: {advisory.original_count} -> {advisory.final_count} sets (target {low}-{high})")

    print(f"\n✓ History record #{result.record_id} | cache key {result.cache_key}")


def print_history(db, user_id):
    records = db.list_history(user_id)
    if not records:
        print(f"No program history for {user_id}.")
        return
    print(f"Program history for {user_id}:")
    for record in records:
        print(f"  #{record.id} {record.created_at.isoformat()} {record.source:<9} {record.cache_key or ''}")
    summary = db.count_summary()
    print(
        f"\nTotals: {summary['history_rows']} history row(s), "
        f"{summary['cache_hit_rows']} cache hit(s), {summary['cache_entries']} cache entry(ies)"
    )


def parse_args():
    parser = argparse.ArgumentParser(description="Generate or inspect weekly training programs.")
    parser.add_argument(
        "--config",
        default=os.path.join(os.path.dirname(os.path.abspath(__file__)), "config.yaml"),
        help="Path to config.yaml.",
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--request", help="YAML file describing the program request.")
    group.add_argument("--history", metavar="USER_ID", help="Print stored program history for a user.")
    return parser.parse_args()


def run(args):
    config = load_config(args.config)
    logging.basicConfig(
        level=getattr(logging, str(config["logging"]["level"]).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.history:
        db = ProgramDB(config["database"]["path"])
        try:
            db.init_schema()
            print_history(db, args.history)
        finally:
            db.close()
        return

    api_key_env = config["claude"]["api_key_env"]
    api_key = os.getenv(api_key_env)
    if not api_key:
        print(f"\n❌ Error: {api_key_env} not found in environment variables!")
        print("\nPlease:")
        print("1. Copy .env.example to .env")
        print("2. Add your Anthropic API key to .env")
        sys.exit(1)

    request = load_request(args.request, default_unit=config["weights"]["unit"])
    service, db = build_service(config, api_key)
    try:
        print("\n🤖 Building your weekly program...")
        result = service.get_weekly_program(request)
        print_program(result)
    finally:
        db.close()


def main():
    """Main application flow."""
    print_banner()
    load_dotenv()
    args = parse_args()

    try:
        run(args)
    except ValidationError as exc:
        print(f"\n❌ Generated draft was rejected: {exc}")
        print(summarize_violations(exc.violations))
        sys.exit(1)
    except ProgramPipelineError as exc:
        print(f"\n❌ Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
