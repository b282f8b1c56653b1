"""Volcano and PCA plots for differential expression results."""

import logging

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from .checks import check_columns

logger = logging.getLogger(__name__)


def _save(fig: plt.Figure, save_path, dpi: int) -> None:
    fig.savefig(save_path, dpi=dpi, bbox_inches="tight", facecolor="white")
    logger.info("Figure saved to: %s", save_path)


def volcano_plot(
    results: pd.DataFrame,
    logfc_col: str = "log2_fold_change",
    fdr_col: str = "adj_p_value",
    fdr_threshold: float = 0.05,
    logfc_threshold: float = 1.0,
    figsize: tuple = (10, 8),
    title: str = "Volcano Plot",
    xlabel: str = "log₂(Fold Change)",
    ylabel: str = "-log₁₀(Adjusted p-value)",
    save_path: str = None,
    **kwargs
) -> plt.Figure:
    """
    Create a volcano plot.

    Genes with a missing adjusted p-value are not drawn.

    Args:
        results: DataFrame with differential expression results
        logfc_col: Column name for log fold change (default: "log2_fold_change")
        fdr_col: Column name for adjusted p-value (default: "adj_p_value")
        fdr_threshold: FDR significance threshold (default: 0.05)
        logfc_threshold: Log fold change threshold for highlighting (default: 1.0)
        figsize: Figure size tuple (default: (10, 8))
        title: Plot title
        xlabel: X-axis label
        ylabel: Y-axis label
        save_path: Path to save figure (optional)
        **kwargs: Additional arguments for customization
            - point_size: Size of points (default: 50)
            - sig_color: Color for significant points (default: '#e74c3c' - red)
            - nonsig_color: Color for non-significant points (default: '#95a5a6' - gray)
            - text_color: Color for axis text (default: '#2c3e50' - dark)
            - alpha: Transparency (default: 0.7)
            - dpi: DPI for saved figure (default: 300)

    Returns:
        matplotlib.figure.Figure: The figure object

    Examples:
        >>> fig = volcano_plot(results, title="Treated vs Control")
        >>> fig = volcano_plot(results, fdr_threshold=0.01, save_path="volcano.png")
    """
    check_columns(results, [logfc_col, fdr_col], "results")

    point_size = kwargs.get('point_size', 50)
    sig_color = kwargs.get('sig_color', '#e74c3c')
    nonsig_color = kwargs.get('nonsig_color', '#95a5a6')
    text_color = kwargs.get('text_color', '#2c3e50')
    alpha = kwargs.get('alpha', 0.7)
    dpi = kwargs.get('dpi', 300)

    df = results.dropna(subset=[logfc_col, fdr_col]).copy()
    # padj can be exactly 0 for very strong effects
    floor = np.nextafter(0, 1)
    df['neg_log10_fdr'] = -np.log10(df[fdr_col].clip(lower=floor))

    sig_mask = (df[fdr_col] < fdr_threshold) & (np.abs(df[logfc_col]) > logfc_threshold)

    fig, ax = plt.subplots(figsize=figsize, dpi=100)

    non_sig = df[~sig_mask]
    ax.scatter(
        non_sig[logfc_col],
        non_sig['neg_log10_fdr'],
        s=point_size,
        color=nonsig_color,
        alpha=alpha * 0.5,
        edgecolors='none',
        label='Not significant',
        zorder=1
    )

    sig = df[sig_mask]
    ax.scatter(
        sig[logfc_col],
        sig['neg_log10_fdr'],
        s=point_size * 1.3,
        color=sig_color,
        alpha=alpha,
        edgecolors='white',
        linewidth=1,
        label=f'FDR < {fdr_threshold}, |logFC| > {logfc_threshold}',
        zorder=2
    )

    ax.axvline(-logfc_threshold, color='#34495e', linestyle='--', linewidth=1.5, alpha=0.6, zorder=0)
    ax.axvline(logfc_threshold, color='#34495e', linestyle='--', linewidth=1.5, alpha=0.6, zorder=0)
    ax.axhline(-np.log10(fdr_threshold), color='#34495e', linestyle='--', linewidth=1.5, alpha=0.6, zorder=0)

    ax.set_xlabel(xlabel, fontsize=13, fontweight='bold', color=text_color)
    ax.set_ylabel(ylabel, fontsize=13, fontweight='bold', color=text_color)
    ax.set_title(title, fontsize=15, fontweight='bold', color=text_color, pad=20)
    ax.grid(True, alpha=0.2, linestyle=':', linewidth=0.8)
    ax.set_axisbelow(True)
    ax.legend(loc='upper right', frameon=True, fontsize=10, framealpha=0.95)

    n_sig = int(sig_mask.sum())
    stats_text = f'Significant: {n_sig}/{len(df)}\n'
    stats_text += f'Up-regulated: {int((sig_mask & (df[logfc_col] > 0)).sum())}\n'
    stats_text += f'Down-regulated: {int((sig_mask & (df[logfc_col] < 0)).sum())}'
    ax.text(
        0.02, 0.98,
        stats_text,
        transform=ax.transAxes,
        fontsize=10,
        verticalalignment='top',
        bbox=dict(boxstyle='round', facecolor='white', alpha=0.85, edgecolor=text_color, linewidth=1.5),
        family='monospace',
        color=text_color
    )

    fig.tight_layout()

    if save_path:
        _save(fig, save_path, dpi)

    return fig


def pca_plot(
    pca: pd.DataFrame,
    percent_var=None,
    hue: str = "condition",
    style: str = None,
    label_col: str = None,
    figsize: tuple = (8, 6),
    title: str = "PCA of variance-stabilized counts",
    save_path: str = None,
    dpi: int = 300,
) -> plt.Figure:
    """
    Scatter the first two principal components of each sample.

    Args:
        pca: Output of ``deseq2.pca_data``: columns ``PC1``, ``PC2`` and
            the annotation columns.
        percent_var: Fraction of variance of PC1 and PC2, shown in the axis labels.
        hue: Column used for color. Default: "condition".
        style: Optional column used for marker style (e.g. "subject").
        label_col: Optional column whose values annotate each point.
        save_path: Path to save figure (optional).

    Returns:
        matplotlib.figure.Figure
    """
    check_columns(pca, ["PC1", "PC2", hue] + ([style] if style else []), "pca")

    fig, ax = plt.subplots(figsize=figsize, dpi=100)
    sns.scatterplot(data=pca, x="PC1", y="PC2", hue=hue, style=style, s=90, ax=ax)

    if label_col is not None:
        for _, row in pca.iterrows():
            ax.annotate(str(row[label_col]), (row["PC1"], row["PC2"]),
                        textcoords="offset points", xytext=(4, 4), fontsize=8)

    if percent_var is not None and len(percent_var) >= 2:
        ax.set_xlabel(f"PC1: {100 * percent_var[0]:.0f}% variance")
        ax.set_ylabel(f"PC2: {100 * percent_var[1]:.0f}% variance")
    ax.set_title(title)
    sns.despine(fig=fig)
    fig.tight_layout()

    if save_path:
        _save(fig, save_path, dpi)

    return fig
