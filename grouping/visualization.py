"""
Visualization for Group Divisions

Bar charts of group averages and category ratios plus a heatmap of
attribute averages per group.
"""

import matplotlib.pyplot as plt
import numpy as np
from typing import List, Optional, Sequence, Tuple

from .data_models import Group
from .validation import ConstraintValidation


class GroupVisualizer:
    """Plots for inspecting how balanced a division is"""

    def __init__(self, groups: Sequence[Group], attribute_names: Optional[Sequence[str]] = None):
        self.groups = list(groups)
        if attribute_names is None:
            attribute_names = []
            for group in self.groups:
                if group.members:
                    attribute_names = group.attribute_names()
                    break
        self.attribute_names = list(attribute_names)
        self.labels = [f"G{g.id + 1}" for g in self.groups]

    def plot_overview(self,
                      validation: Optional[ConstraintValidation] = None,
                      figsize: Tuple[int, int] = (14, 10),
                      save_path: Optional[str] = None,
                      show: bool = True):
        """
        Create a multi-panel overview figure

        Args:
            validation: Optional constraint check, shown in the title
            figsize: Figure size (width, height)
            save_path: Optional path to save the figure
            show: Call plt.show() after drawing
        """
        fig = plt.figure(figsize=figsize)
        gs = fig.add_gridspec(2, 2, height_ratios=[1, 1])

        self.plot_average_totals(fig.add_subplot(gs[0, 0]))
        self.plot_category_ratios(fig.add_subplot(gs[0, 1]))
        self.plot_attribute_heatmap(fig.add_subplot(gs[1, :]))

        if validation is not None:
            status = "all constraints met" if validation.all_met else "constraints not met"
            fig.suptitle(f"{len(self.groups)} groups, {status} "
                         f"(score spread {validation.max_score_diff:.2f}, "
                         f"ratio spread {validation.max_gender_ratio_diff:.3f})")

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=300, bbox_inches='tight')

        if show:
            plt.show()
        return fig

    def plot_average_totals(self, ax: plt.Axes = None):
        """Group average totals against the overall mean"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(8, 5))

        averages = np.array([g.avg_total_score() for g in self.groups])
        x = np.arange(len(self.groups))
        ax.bar(x, averages, color="steelblue", alpha=0.8)
        if len(averages):
            ax.axhline(averages.mean(), color="red", linestyle='--', linewidth=1, label="Mean")
            spread = max(np.ptp(averages), 1.0)
            ax.set_ylim(averages.min() - spread, averages.max() + spread)
            ax.legend()
        ax.set_xticks(x)
        ax.set_xticklabels(self.labels)
        ax.set_ylabel("Average total")
        ax.set_title("Group Average Totals")
        ax.grid(True, axis='y', alpha=0.3)

    def plot_category_ratios(self, ax: plt.Axes = None):
        """Stacked primary/secondary counts with the primary ratio annotated"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(8, 5))

        primary = np.array([g.primary_count() for g in self.groups])
        secondary = np.array([g.secondary_count() for g in self.groups])
        x = np.arange(len(self.groups))
        ax.bar(x, primary, label="Primary", color="orange", alpha=0.8)
        ax.bar(x, secondary, bottom=primary, label="Secondary", color="cyan", alpha=0.8)

        for i, group in enumerate(self.groups):
            ax.text(i, group.size, f"{group.category_ratio():.2f}", ha='center', va='bottom', fontsize=8)

        ax.set_xticks(x)
        ax.set_xticklabels(self.labels)
        ax.set_ylabel("Members")
        ax.set_title("Category Composition")
        ax.legend()

    def plot_attribute_heatmap(self, ax: plt.Axes = None):
        """Deviation of each group's attribute average from the attribute mean"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(10, 5))

        if not self.attribute_names:
            ax.set_title("No attributes")
            return

        averages = np.array([[g.avg_attribute_score(name) for name in self.attribute_names]
                             for g in self.groups])
        deviations = averages - averages.mean(axis=0)
        limit = max(float(np.abs(deviations).max()), 1e-6)

        im = ax.imshow(deviations, cmap='RdBu_r', aspect='auto', vmin=-limit, vmax=limit)
        cbar = plt.colorbar(im, ax=ax)
        cbar.set_label("Deviation from mean")

        ax.set_xticks(range(len(self.attribute_names)))
        ax.set_xticklabels(self.attribute_names, rotation=45, ha='right')
        ax.set_yticks(range(len(self.groups)))
        ax.set_yticklabels(self.labels)
        ax.set_title("Attribute Averages (deviation per group)")


def compare_divisions(divisions: List[Sequence[Group]],
                      titles: Optional[List[str]] = None,
                      save_path: Optional[str] = None,
                      show: bool = True):
    """Side-by-side average-total charts for several divisions"""
    n = len(divisions)
    fig, axes = plt.subplots(1, n, figsize=(6 * n, 5), squeeze=False)
    for i, groups in enumerate(divisions):
        ax = axes[0][i]
        GroupVisualizer(groups).plot_average_totals(ax)
        if titles and i < len(titles):
            ax.set_title(titles[i])

    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
    if show:
        plt.show()
    return fig
