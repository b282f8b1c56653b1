"""
Sorting, filtering and summarizing differential expression results.

All functions work on the standardized results frame returned by
``differential_counts.deseq2.results`` (columns ``gene``, ``log2_fold_change``,
``p_value``, ``adj_p_value``, ...) and never modify their input.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict

import numpy as np
import pandas as pd

from .checks import check_columns, check_probability

LFC_COL = "log2_fold_change"
PVALUE_COL = "p_value"
PADJ_COL = "adj_p_value"


@dataclass(frozen=True)
class ResultsSummary:
    """Counts describing one results table at a given threshold."""
    tested: int
    significant: int
    up: int
    down: int
    missing_adj_p_value: int
    threshold: float
    lfc_threshold: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def sort_by_adjusted_pvalue(results: pd.DataFrame, padj_col: str = PADJ_COL) -> pd.DataFrame:
    """Sort ascending by adjusted p-value; missing values go last, ties keep order."""
    check_columns(results, [padj_col], "results")
    return results.sort_values(
        padj_col, ascending=True, na_position="last", kind="mergesort"
    ).reset_index(drop=True)


def is_sorted_by_adjusted_pvalue(results: pd.DataFrame, padj_col: str = PADJ_COL) -> bool:
    """True if non-missing adjusted p-values are non-decreasing and NaNs trail."""
    check_columns(results, [padj_col], "results")
    padj = results[padj_col].to_numpy(dtype=float)
    missing = np.isnan(padj)
    if missing.any():
        first_missing = int(np.argmax(missing))
        if not missing[first_missing:].all():
            return False
        padj = padj[:first_missing]
    return bool(np.all(np.diff(padj) >= 0))


def filter_significant(
    results: pd.DataFrame,
    threshold: float = 0.05,
    lfc_threshold: float = 0.0,
    padj_col: str = PADJ_COL,
    lfc_col: str = LFC_COL,
) -> pd.DataFrame:
    """
    Keep genes with adjusted p-value strictly below `threshold`.

    Args:
        results: Results table.
        threshold: Adjusted p-value cutoff. Default: 0.05.
        lfc_threshold: Optional minimum absolute log2 fold change.
        padj_col: Adjusted p-value column.
        lfc_col: Effect size column.

    Returns:
        pd.DataFrame: Matching rows in their original order.

    Example:
        >>> sig = filter_significant(sort_by_adjusted_pvalue(res), threshold=0.05)
    """
    check_probability(threshold, "threshold")
    check_columns(results, [padj_col], "results")
    mask = results[padj_col] < threshold
    if lfc_threshold > 0:
        check_columns(results, [lfc_col], "results")
        mask &= results[lfc_col].abs() >= lfc_threshold
    return results.loc[mask.fillna(False)].reset_index(drop=True)


def summarize_results(
    results: pd.DataFrame,
    threshold: float = 0.05,
    lfc_threshold: float = 0.0,
    padj_col: str = PADJ_COL,
    lfc_col: str = LFC_COL,
) -> ResultsSummary:
    """Count significant, up- and down-regulated genes, selected as in :func:`filter_significant`."""
    check_columns(results, [padj_col, lfc_col], "results")
    sig = filter_significant(
        results, threshold, lfc_threshold, padj_col=padj_col, lfc_col=lfc_col
    )
    return ResultsSummary(
        tested=len(results),
        significant=len(sig),
        up=int((sig[lfc_col] > 0).sum()),
        down=int((sig[lfc_col] < 0).sum()),
        missing_adj_p_value=int(results[padj_col].isna().sum()),
        threshold=float(threshold),
        lfc_threshold=float(lfc_threshold),
    )


def check_results_integrity(
    results: pd.DataFrame,
    pvalue_col: str = PVALUE_COL,
    padj_col: str = PADJ_COL,
) -> None:
    """
    Check the multiple-testing contract of a results table.

    Raises:
        ValueError: If a p-value lies outside [0, 1] or an adjusted
            p-value is smaller than its raw p-value.
    """
    check_columns(results, [pvalue_col, padj_col], "results")
    pvals = results[pvalue_col].to_numpy(dtype=float)
    padj = results[padj_col].to_numpy(dtype=float)

    for name, values in ((pvalue_col, pvals), (padj_col, padj)):
        present = values[~np.isnan(values)]
        if ((present < 0) | (present > 1)).any():
            raise ValueError(f"`{name}` has values outside [0, 1]")

    both = ~np.isnan(pvals) & ~np.isnan(padj)
    # tolerance for float round-off in R's p.adjust
    bad = both & (padj < pvals - 1e-12)
    if bad.any():
        genes = results.loc[bad, "gene"].tolist() if "gene" in results.columns else np.flatnonzero(bad).tolist()
        raise ValueError(f"Adjusted p-values below raw p-values for: {genes[:5]}")
