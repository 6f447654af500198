from __future__ import annotations

from pathlib import Path

import os
import sys
import matplotlib
# Only force Agg on Linux when there's truly no display to avoid blank windows.
if sys.platform.startswith("linux") and not os.environ.get("DISPLAY"):
    try:
        matplotlib.use("Agg", force=True)
    except Exception:
        pass
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns


class TrackPlotter:
    def __init__(self):
        sns.set(style="whitegrid")

    def plot_trackline(
        self,
        track: pd.DataFrame,
        hue: str | None = "depth",
        figsize: tuple[int, int] = (8, 8),
    ):
        """Ship trackline as a lon/lat scatter, coloured by depth."""
        fig, ax = plt.subplots(figsize=figsize)
        sns.scatterplot(
            data=track,
            x="longitude",
            y="latitude",
            hue=hue if hue in track.columns else None,
            palette="viridis",
            ax=ax,
            s=8,
            edgecolor=None,
            legend="brief",
        )
        ax.set_xlabel("Longitude (°)")
        ax.set_ylabel("Latitude (°)")
        ax.set_title("Trackline")
        fig.tight_layout()
        return fig

    def plot_depth_profile(
        self,
        track: pd.DataFrame,
        survey: pd.DataFrame,
        figsize: tuple[int, int] = (12, 7),
    ):
        """Mean backscatter (top) and seafloor depth (bottom) along the track.

        The bottom panel draws the sounder depth of every fix and the
        display-clamped mean depth of each survey interval.
        """
        fig, (ax_sv, ax_depth) = plt.subplots(2, 1, figsize=figsize, sharex=True)
        placed = survey.dropna(subset=["distance_along_track"])

        sns.scatterplot(
            data=placed,
            x="distance_along_track",
            y="sv_mean",
            ax=ax_sv,
            s=20,
            color="tab:blue",
            edgecolor=None,
        )
        ax_sv.set_ylabel("Sv mean (dB re 1 m⁻¹)")
        ax_sv.set_title("Mean volume backscatter along track")

        ax_depth.plot(track["distance_along_track"], track["depth"], color="0.6", linewidth=1.0, label="Sounder depth")
        ax_depth.scatter(
            placed["distance_along_track"],
            placed["depth_for_display"],
            s=20,
            color="tab:red",
            zorder=3,
            label="Interval mean depth",
        )
        ax_depth.invert_yaxis()
        ax_depth.set_xlabel("Distance along track (m)")
        ax_depth.set_ylabel("Depth (m)")
        ax_depth.legend()
        fig.tight_layout()
        return fig

    def save_plot(self, fig, output_path: Path, format: str = "png", close: bool = True) -> Path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        target = output_path.with_suffix(f".{format}")
        fig.savefig(target, dpi=300)
        if close:
            plt.close(fig)
        return target
