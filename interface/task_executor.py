from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from aggregation.interval_index import TieBreak
from analysis.alignment import AlignmentResult, AlignmentSettings, align_track_to_survey
from analysis.statistics import StatisticsCalculator
from data_loader.csv_loader import SurveyDataLoader
from utils.io_helpers import read_config, setup_logging, write_table
from visualization.track_plots import TrackPlotter

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    ok: bool
    message: str
    artifact: Optional[Path] = None


class TaskExecutor:
    def __init__(self, config_path: Path = Path("config/settings.yaml")):
        self.config = read_config(config_path)
        log_cfg = self.config.get("logging", {}) or {}
        setup_logging(log_cfg.get("level", "INFO"), log_cfg.get("file"))
        data_cfg = self.config.get("data", {}) or {}
        load_cfg = self.config.get("loading", {}) or {}
        self.settings = AlignmentSettings.from_config(self.config)
        self.loader = SurveyDataLoader()
        self.stats = StatisticsCalculator()
        self.plotter = TrackPlotter()
        self.result: Optional[AlignmentResult] = None
        self.state: Dict[str, Any] = {
            "track": data_cfg.get("track_path"),
            "pattern": data_cfg.get("track_pattern", "*.csv"),
            "acoustic": data_cfg.get("acoustic_path"),
            "out_dir": data_cfg.get("output_dir", "outputs"),
            "lazy": bool(load_cfg.get("lazy", False)),
            "blocksize": load_cfg.get("blocksize", "64MB"),
        }

    def execute(self, command: Dict[str, Any]) -> ExecutionResult:
        task = command.get("task")
        try:
            if task == "set":
                params = {k: v for k, v in command.get("params", {}).items() if v is not None}
                if "tie_break" in params:
                    self.settings.tie_break = TieBreak(params.pop("tie_break"))
                self.state.update(params)
                return ExecutionResult(True, f"Updated settings: {command.get('params', {})}")

            if task == "align":
                return self._align()

            if task == "plot_track":
                return self._plot_track()

            if task == "plot_profile":
                return self._plot_profile()

            if task == "compute_stats":
                return self._compute_stats()

            if task == "help":
                return ExecutionResult(True, self.help_text())

            return ExecutionResult(False, f"Unknown task: {task}")
        except Exception as e:  # noqa: BLE001
            logger.exception("Error executing task")
            return ExecutionResult(False, f"Error: {e}")

    def _out_dir(self) -> Path:
        return Path(self.state["out_dir"])

    def _align(self) -> ExecutionResult:
        if not self.state.get("track") or not self.state.get("acoustic"):
            return ExecutionResult(False, "Both a track path and an acoustic path are required")
        track_rows = self.loader.load_frame(
            Path(self.state["track"]),
            self.state["pattern"],
            lazy=self.state["lazy"],
            blocksize=self.state["blocksize"],
        )
        acoustic_rows = self.loader.load_frame(Path(self.state["acoustic"]), lazy=False)
        self.result = align_track_to_survey(track_rows, acoustic_rows, self.settings)

        write_table(self.result.track, self._out_dir() / "clean_track.csv")
        out = write_table(self.result.survey, self._out_dir() / "enriched_survey.csv")
        matched = int(self.result.survey["depth_matched"].sum())
        return ExecutionResult(
            True,
            f"Aligned {len(self.result.track)} track fixes; "
            f"{matched} of {len(self.result.survey)} acoustic records have a depth",
            artifact=out,
        )

    def _ensure_result(self) -> AlignmentResult:
        if self.result is None:
            raise RuntimeError("No alignment result. Run 'align' first.")
        return self.result

    def _plot_track(self) -> ExecutionResult:
        result = self._ensure_result()
        if result.track.empty:
            return ExecutionResult(False, "Track is empty; nothing to plot")
        fig = self.plotter.plot_trackline(result.track)
        out = self.plotter.save_plot(fig, self._out_dir() / "plots" / "trackline.png")
        return ExecutionResult(True, f"Saved plot to {out}", artifact=out)

    def _plot_profile(self) -> ExecutionResult:
        result = self._ensure_result()
        if result.track.empty:
            return ExecutionResult(False, "Track is empty; nothing to plot")
        fig = self.plotter.plot_depth_profile(result.track, result.survey)
        out = self.plotter.save_plot(fig, self._out_dir() / "plots" / "depth_profile.png")
        return ExecutionResult(True, f"Saved plot to {out}", artifact=out)

    def _compute_stats(self) -> ExecutionResult:
        result = self._ensure_result()
        stats = self.stats.calculate_descriptive_stats(result.survey, ["mean_depth", "n_fixes", "sv_mean", "depth_for_display"])
        fix_stats = self.stats.interval_fix_stats(result)
        summary = self.stats.alignment_summary(result)
        out = self._out_dir() / "reports" / "alignment_stats.txt"
        self.stats.save_stats_to_file(stats, summary, out, fix_stats=fix_stats)
        return ExecutionResult(True, f"Saved stats to {out}", artifact=out)

    def help_text(self) -> str:
        return (
            "Tasks:\n"
            "  set       track=, pattern=, acoustic=, out_dir=, tie_break=\n"
            "  align     clean the track, match fixes to survey intervals, write enriched_survey.csv\n"
            "  plot_track     trackline scatter coloured by depth\n"
            "  plot_profile   backscatter and depth against distance along track\n"
            "  compute_stats  summary and descriptive statistics report\n"
        )
