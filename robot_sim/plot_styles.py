"""Shared plotting utilities and styles for recorded runs.

This module provides:
- Color scheme
- CSV data loading functions
- Common plot styling functions
"""

import csv
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes

from .config import PLOT_BLUE, PLOT_ORANGE, PLOT_TAUPE, PLOT_YELLOW_ORANGE

__all__ = [
    "PLOT_ORANGE",
    "PLOT_BLUE",
    "PLOT_TAUPE",
    "PLOT_YELLOW_ORANGE",
    "load_csv_to_dict",
    "style_axis",
    "add_legend",
    "create_figure",
    "save_figure",
]


# ============================================================================
# CSV Data Loading
# ============================================================================


def load_csv_to_dict(csv_path: Path, text_columns: Sequence[str] = ()) -> Dict[str, np.ndarray]:
    """Load CSV file into dictionary of numpy arrays.

    Numeric columns become float arrays; non-numeric or empty values become
    NaN. Columns named in text_columns are kept as string arrays.

    Args:
        csv_path: Path to CSV file.
        text_columns: Columns to keep as text.

    Returns:
        Dictionary mapping column names to numpy arrays.

    Raises:
        FileNotFoundError: If the CSV file does not exist.

    Example:
        >>> data = load_csv_to_dict(Path("pid_data.csv"), text_columns=["controller"])
        >>> data["error"].shape
        (412,)
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        data: Dict[str, List] = {name: [] for name in reader.fieldnames or []}
        for row in reader:
            for key, value in row.items():
                if key in text_columns:
                    data[key].append(value)
                    continue
                try:
                    data[key].append(float(value))
                except (ValueError, TypeError):
                    data[key].append(np.nan)

    return {
        key: np.array(values, dtype=str if key in text_columns else float)
        for key, values in data.items()
    }


# ============================================================================
# Plot Styling Functions
# ============================================================================


def style_axis(ax: Axes, title: str = "", xlabel: str = "", ylabel: str = "", grid: bool = True) -> None:
    """Apply consistent styling to a matplotlib axis.

    Args:
        ax: Matplotlib axis to style.
        title: Plot title (optional).
        xlabel: X-axis label (optional).
        ylabel: Y-axis label (optional).
        grid: Whether to show grid lines (default: True).
    """
    if title:
        ax.set_title(title, fontweight="bold")
    if xlabel:
        ax.set_xlabel(xlabel)
    if ylabel:
        ax.set_ylabel(ylabel)
    if grid:
        ax.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)


def add_legend(ax: Axes, loc: str = "best", **kwargs) -> None:
    """Add a legend with the shared styling.

    Args:
        ax: Matplotlib axis to add legend to.
        loc: Legend location (default: "best").
        **kwargs: Additional keyword arguments passed to ax.legend().
    """
    legend_kwargs = {
        "loc": loc,
        "framealpha": 0.9,
        "edgecolor": PLOT_TAUPE,
    }
    legend_kwargs.update(kwargs)
    ax.legend(**legend_kwargs)


def create_figure(
    nrows: int = 1, ncols: int = 1, figsize: Tuple[float, float] = (12, 8), title: str = ""
) -> Tuple[plt.Figure, np.ndarray]:
    """Create a figure with a grid of axes.

    Returns:
        Tuple of (figure, axes array).
    """
    fig, axes = plt.subplots(nrows, ncols, figsize=figsize, squeeze=False)
    if title:
        fig.suptitle(title, fontsize=14, fontweight="bold")
    return fig, axes


def save_figure(fig: plt.Figure, filepath: Path, dpi: int = 150, bbox_inches: str = "tight") -> None:
    """Save figure with consistent settings.

    Args:
        fig: Matplotlib figure to save.
        filepath: Path where to save the figure.
        dpi: Resolution in dots per inch (default: 150).
        bbox_inches: Bounding box setting (default: "tight").
    """
    fig.savefig(filepath, dpi=dpi, bbox_inches=bbox_inches)
    print(f"Saved figure to {filepath}")
