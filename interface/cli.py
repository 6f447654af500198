from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from interface.task_executor import TaskExecutor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="survey-align",
        description="Align a depth-sounder trackline with acoustic survey intervals.",
    )
    parser.add_argument("--config", type=Path, default=Path("config/settings.yaml"), help="YAML settings file")
    parser.add_argument("--track", help="Track CSV file or directory of track files")
    parser.add_argument("--track-pattern", help="Glob for track files when --track is a directory")
    parser.add_argument("--acoustic", help="Acoustic interval export CSV")
    parser.add_argument("--out-dir", help="Directory for output tables, plots and reports")
    parser.add_argument(
        "--tie-break",
        choices=["first", "smallest_id", "earliest_start"],
        help="Interval chosen when a fix falls inside overlapping intervals",
    )
    parser.add_argument("--no-plots", action="store_true", help="Skip the trackline and depth profile plots")
    parser.add_argument("--stats", action="store_true", help="Write the statistics report")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    executor = TaskExecutor(args.config)

    commands = [
        {
            "task": "set",
            "params": {
                "track": args.track,
                "pattern": args.track_pattern,
                "acoustic": args.acoustic,
                "out_dir": args.out_dir,
                "tie_break": args.tie_break,
            },
        },
        {"task": "align"},
    ]
    if not args.no_plots:
        commands += [{"task": "plot_track"}, {"task": "plot_profile"}]
    if args.stats:
        commands.append({"task": "compute_stats"})

    for cmd in commands:
        result = executor.execute(cmd)
        if cmd["task"] == "set":
            continue
        style = "green" if result.ok else "bold red"
        console.print(result.message, style=style)
        if not result.ok:
            return 1
        if result.artifact:
            console.print(f"Artifact: {result.artifact}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
