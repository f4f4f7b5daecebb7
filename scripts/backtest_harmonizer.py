#!/usr/bin/env python3
"""
Replay saved raw drafts through validation, split enforcement and volume
harmonization, and report how much correction each one needed.
"""

import argparse
import glob
import json
import os
import sys
from collections import Counter
from datetime import datetime

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from program_pipeline.config import load_config
from program_pipeline.draft_validator import summarize_violations, validate_draft
from program_pipeline.errors import ValidationError
from program_pipeline.exercise_normalizer import ExerciseNormalizer
from program_pipeline.muscle_map import ExerciseMuscleMap
from program_pipeline.program_types import Cohort
from program_pipeline.split_enforcer import enforce_split
from program_pipeline.volume_harmonizer import harmonize_volume


ADVISORY_WEIGHT = 5
RELABEL_WEIGHT = 2
INVALID_DRAFT_SCORE = 0


def _load_drafts(input_path):
    if os.path.isdir(input_path):
        paths = sorted(glob.glob(os.path.join(input_path, "*.json")))
    else:
        paths = [input_path]

    drafts = []
    for path in paths:
        with open(path, "r", encoding="utf-8") as f:
            drafts.append((os.path.basename(path), f.read()))
    return drafts


def _score(notes, advisories):
    unresolved = [a for a in advisories if not (a.target_range[0] <= a.final_count <= a.target_range[1])]
    relabels = [n for n in notes if n.startswith("Relabeled")]
    return max(0, 100 - ADVISORY_WEIGHT * len(unresolved) - RELABEL_WEIGHT * len(relabels))


def run_backtest(drafts, cohort, muscle_map, harmonizer_config, limit=None):
    results = []
    muscle_counter = Counter()
    invalid = 0

    selected = drafts[:limit] if limit and limit > 0 else drafts
    for name, raw in selected:
        try:
            draft = validate_draft(raw)
        except ValidationError as exc:
            invalid += 1
            results.append(
                {
                    "draft": name,
                    "valid": False,
                    "score": INVALID_DRAFT_SCORE,
                    "violations": exc.violations,
                    "notes": [],
                    "advisories": [],
                }
            )
            continue

        draft, notes = enforce_split(draft, cohort, muscle_map)
        draft, advisories = harmonize_volume(
            draft,
            cohort,
            muscle_map,
            minutes_per_set=harmonizer_config["minutes_per_set"],
            max_sets_per_exercise=harmonizer_config["max_sets_per_exercise"],
            default_session_minutes=harmonizer_config["default_session_minutes"],
        )
        for advisory in advisories:
            muscle_counter[advisory.muscle_group] += 1

        results.append(
            {
                "draft": name,
                "valid": True,
                "score": _score(notes, advisories),
                "violations": [],
                "notes": notes,
                "advisories": [advisory.to_dict() for advisory in advisories],
            }
        )

    aggregate_score = round(sum(r["score"] for r in results) / len(results), 2) if results else 0.0
    return {
        "generated_at": datetime.now().isoformat(),
        "draft_count": len(results),
        "invalid_count": invalid,
        "aggregate_score": aggregate_score,
        "advisory_muscle_counts": dict(muscle_counter),
        "results": results,
    }


def write_reports(report, output_dir):
    os.makedirs(output_dir, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    json_path = os.path.join(output_dir, f"harmonizer_backtest_{stamp}.json")
    md_path = os.path.join(output_dir, f"harmonizer_backtest_{stamp}.md")

    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2)

    lines = [
        "# Harmonizer Backtest",
        "",
        f"- Generated at: {report['generated_at']}",
        f"- Drafts tested: {report['draft_count']}",
        f"- Invalid drafts: {report['invalid_count']}",
        f"- Aggregate score: {report['aggregate_score']}",
        "",
        "## Advisories by Muscle Group",
    ]
    if report["advisory_muscle_counts"]:
        for muscle, count in sorted(report["advisory_muscle_counts"].items(), key=lambda item: (-item[1], item[0])):
            lines.append(f"- `{muscle}`: {count}")
    else:
        lines.append("- No advisories.")

    lines.append("")
    lines.append("## Per-Draft Results")
    for result in report["results"]:
        if not result["valid"]:
            lines.append(f"- `{result['draft']}` | invalid | {len(result['violations'])} violation(s)")
            lines.append(summarize_violations(result["violations"], limit=8))
            continue
        lines.append(
            f"- `{result['draft']}` | score {result['score']} | "
            f"notes {len(result['notes'])} | advisories {len(result['advisories'])}"
        )
        for note in result["notes"][:8]:
            lines.append(f"  - {note}")
        for advisory in result["advisories"][:8]:
            lines.append(f"  - `{advisory['muscle_group']}`: {advisory['note']}")

    with open(md_path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")

    return json_path, md_path


def parse_args():
    parser = argparse.ArgumentParser(description="Backtest split enforcement and volume harmonization.")
    parser.add_argument("input", help="A raw draft JSON file or a directory of them.")
    parser.add_argument("--focus", default="hypertrophy", help="Cohort training focus.")
    parser.add_argument("--experience", default="intermediate", help="Cohort experience level.")
    parser.add_argument("--days", type=int, default=None, help="Cohort days per week.")
    parser.add_argument("--session-minutes", type=int, default=None, help="Cohort session length.")
    parser.add_argument("--config", default=os.path.join(ROOT_DIR, "config.yaml"), help="Path to config.yaml.")
    parser.add_argument("--limit", type=int, default=0, help="Optional number of drafts to evaluate.")
    parser.add_argument(
        "--output-dir",
        default="output/backtest",
        help="Directory for markdown/json reports.",
    )
    return parser.parse_args()


def main():
    args = parse_args()
    config = load_config(args.config)

    drafts = _load_drafts(args.input)
    if not drafts:
        raise RuntimeError(f"No draft JSON files found at {args.input}.")

    normalizer = ExerciseNormalizer()
    muscle_map = ExerciseMuscleMap.from_yaml(normalizer, config["harmonizer"].get("muscle_map_file"))
    cohort = Cohort(
        training_focus=args.focus,
        experience_level=args.experience,
        days_per_week=args.days,
        session_minutes=args.session_minutes,
    )

    report = run_backtest(drafts, cohort, muscle_map, config["harmonizer"], limit=args.limit)
    json_path, md_path = write_reports(report, args.output_dir)

    print(f"Backtest complete. Drafts: {report['draft_count']} | Aggregate score: {report['aggregate_score']}")
    print(f"JSON report: {json_path}")
    print(f"Markdown report: {md_path}")


if __name__ == "__main__":
    main()
