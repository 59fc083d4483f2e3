#!/usr/bin/env python3
"""Single-word command dispatcher for the analytics scripts.

Maps command words to script invocations so every report is reachable from
one entry point.

Usage:
    python scripts/run.py analytics
    python scripts/run.py funnel
    python scripts/run.py load exports/jobs.json
    python scripts/run.py interviews data/interviews.yaml
    python scripts/run.py --help
"""

import subprocess
import sys
from pathlib import Path

SCRIPTS_DIR = Path(__file__).resolve().parent

# --- No-argument commands ---
COMMANDS = {
    "analytics":  ("analytics.py", [],                      "Full snapshot: headline metrics and insights"),
    "csv":        ("analytics.py", ["--export", "csv"],     "Export the snapshot as CSV to stdout"),
    "json":       ("analytics.py", ["--export", "json"],    "Export the snapshot as JSON to stdout"),
    "funnel":     ("funnel_report.py", [],                  "Jobs per status and stage conversion"),
    "targets":    ("funnel_report.py", ["--targets"],       "Stage conversion against target rates"),
    "conversion": ("conversion_report.py", [],              "Response rate by company size, industry, job type, method"),
    "benchmarks": ("conversion_report.py", ["--benchmarks"], "Industry offer rates against benchmarks"),
    "velocity":   ("velocity.py", [],                       "Jobs added per period"),
    "trend":      ("velocity.py", ["--conversion"],         "Response rate trend with rolling average"),
    "weekdays":   ("velocity.py", ["--weekdays"],           "Response rate by day of week"),
    "durations":  ("durations.py", [],                      "Stage timing, time to offer, deadline adherence"),
}

# --- Parameterized commands (word + argument) ---
PARAM_COMMANDS = {
    "load":       ("analytics.py", ["--records"],           "Snapshot from a JSON/YAML export file"),
    "goal":       ("analytics.py", ["--goal"],              "Snapshot with a different weekly goal"),
    "export":     ("analytics.py", ["--export", "csv", "--output"], "Write the CSV snapshot to a file"),
    "segment":    ("conversion_report.py", ["--by"],        "Response rate by one attribute"),
    "interviews": ("interview_report.py", ["--interviews"], "Interview outcomes from a JSON/YAML file"),
}


def show_help():
    """Print all available commands."""
    print("Job Search Analytics — Single-Word Commands")
    print("=" * 55)
    print()
    print("STANDALONE COMMANDS:")
    for cmd, (_, _, desc) in sorted(COMMANDS.items()):
        print(f"  {cmd:<14s} {desc}")
    print()
    print("PARAMETERIZED COMMANDS (word + argument):")
    for cmd, (_, _, desc) in sorted(PARAM_COMMANDS.items()):
        print(f"  {cmd:<14s} {desc}")
    print()
    print("SEQUENCES:")
    print("  Weekly review: analytics → funnel → conversion → trend")
    print("  Timing:        durations → weekdays")
    print()
    print("Usage: python scripts/run.py <command> [argument]")


def build_args(cmd: str, target: str | None = None) -> list[str]:
    """Resolve a command word to the argv that runs it.

    Raises KeyError for an unknown word and ValueError when a parameterized
    command is missing its argument.
    """
    if cmd in COMMANDS and target is None:
        script, args, _ = COMMANDS[cmd]
        return [sys.executable, str(SCRIPTS_DIR / script)] + args
    if cmd in PARAM_COMMANDS:
        if target is None:
            raise ValueError(f"'{cmd}' requires an argument")
        script, args, _ = PARAM_COMMANDS[cmd]
        return [sys.executable, str(SCRIPTS_DIR / script)] + args + [target]
    raise KeyError(cmd)


def run_command(cmd: str, target: str | None = None):
    """Execute a command and exit with its return code."""
    try:
        full_args = build_args(cmd, target)
    except ValueError as e:
        print(f"Error: {e}.", file=sys.stderr)
        print(f"Usage: python scripts/run.py {cmd} <argument>", file=sys.stderr)
        sys.exit(1)
    except KeyError:
        print(f"Unknown command: '{cmd}'", file=sys.stderr)
        print("Run 'python scripts/run.py --help' for available commands.", file=sys.stderr)
        sys.exit(1)

    result = subprocess.run(full_args)
    sys.exit(result.returncode)


def main():
    if len(sys.argv) < 2 or sys.argv[1] in ("--help", "-h", "help"):
        show_help()
        sys.exit(0)

    cmd = sys.argv[1].lower()
    target = sys.argv[2] if len(sys.argv) > 2 else None

    run_command(cmd, target)


if __name__ == "__main__":
    main()
