"""
Extract results tables using DESeq2::results and DESeq2::lfcShrink.

This module provides a functional interface returning pandas DataFrames
with standardized column names:

    gene, base_mean, log2_fold_change, lfc_se, stat, p_value, adj_p_value
"""

from __future__ import annotations
from typing import Optional, Sequence, Union
import logging
import pandas as pd

from ..checks import check_probability
from .checks import check_fitted, check_contrast, check_coef_or_contrast
from .dataset import DESeqModel
from .utils import _prep_deseq2, r_to_pandas, standardize_results

logger = logging.getLogger(__name__)


def default_contrast(model: DESeqModel, variable: str = "condition") -> tuple:
    """``(variable, non-reference level, reference level)`` for a two-level factor."""
    levels = model.condition_levels
    return (variable, levels[1], levels[0])


def results(
    model: DESeqModel,
    contrast: Optional[Sequence[str]] = None,
    name: Optional[str] = None,
    alpha: float = 0.05,
    p_adjust_method: str = "BH",
    independent_filtering: bool = True,
    lfc_threshold: float = 0.0,
    **kwargs,
) -> pd.DataFrame:
    """
    Extract the per-gene results table of a fitted model.

    Wraps ``DESeq2::results``. Adjusted p-values use the Benjamini–Hochberg
    procedure by default; genes removed by independent filtering or flagged
    as outliers have missing (NaN) adjusted p-values.

    Args:
        model: Fitted DESeqModel.
        contrast: ``(variable, numerator, denominator)``. Default: the
            non-reference condition level against the reference level.
        name: Result name (coefficient) to use instead of a contrast.
        alpha: Target FDR for independent filtering. Default: 0.05.
        p_adjust_method: Multiple testing method. Default: "BH".
        independent_filtering: Filter low-mean genes before adjustment.
        lfc_threshold: Test against |log2FC| > threshold instead of 0.
        **kwargs: Additional args forwarded to R function.

    Returns:
        pd.DataFrame: One row per gene in dataset order, columns:
            - gene: gene identifier
            - base_mean: mean of normalized counts
            - log2_fold_change: effect size
            - lfc_se: standard error of the effect size
            - stat: Wald (or LRT) statistic
            - p_value: raw p-value
            - adj_p_value: adjusted p-value

    Raises:
        ValueError: If the model is not fitted or the contrast is invalid.

    Example:
        >>> res = deseq2.results(model, contrast=("condition", "treated", "ctrl"))
        >>> res.sort_values("adj_p_value").head()
    """
    check_fitted(model)
    check_probability(alpha, "alpha")

    r, pkg = _prep_deseq2()
    call_kwargs = {
        "alpha": alpha,
        "pAdjustMethod": p_adjust_method,
        "independentFiltering": independent_filtering,
        "lfcThreshold": lfc_threshold,
    }
    if name is not None:
        call_kwargs["name"] = name
        label = name
    else:
        if contrast is None:
            contrast = default_contrast(model)
        check_contrast(contrast, model.column_data)
        call_kwargs["contrast"] = r.StrVector([str(c) for c in contrast])
        label = f"{contrast[0]}: {contrast[1]} vs {contrast[2]}"
    call_kwargs.update(kwargs)

    res_r = pkg.results(model.dds, **call_kwargs)
    df = standardize_results(r_to_pandas(res_r))
    df.attrs["comparison"] = label
    df.attrs["alpha"] = alpha
    df.attrs["p_adjust_method"] = p_adjust_method

    logger.info("Extracted results for %s (%d genes)", label, len(df))
    return df


def lfc_shrink(
    model: DESeqModel,
    coef: Optional[Union[str, int]] = None,
    contrast: Optional[Sequence[str]] = None,
    type: str = "normal",
    **kwargs,
) -> pd.DataFrame:
    """
    Shrunken log2 fold changes using DESeq2::lfcShrink.

    The ``normal`` estimator ships with DESeq2; ``apeglm`` and ``ashr``
    need their R packages installed and only accept `coef`.

    Args:
        model: Fitted DESeqModel.
        coef: Coefficient name or 1-based index.
        contrast: ``(variable, numerator, denominator)``.
        type: "normal", "apeglm" or "ashr". Default: "normal".
        **kwargs: Additional args forwarded to R function.

    Returns:
        pd.DataFrame: Results table with standardized columns; shrunken
        tables may lack ``stat``.
    """
    check_fitted(model)
    if coef is None and contrast is None:
        contrast = default_contrast(model)
    check_coef_or_contrast(coef, contrast)

    r, pkg = _prep_deseq2()
    call_kwargs = {"type": type, "quiet": True}
    if coef is not None:
        call_kwargs["coef"] = r.IntVector([coef]) if isinstance(coef, int) else r.StrVector([str(coef)])
    else:
        check_contrast(contrast, model.column_data)
        call_kwargs["contrast"] = r.StrVector([str(c) for c in contrast])
    call_kwargs.update(kwargs)

    res_r = pkg.lfcShrink(model.dds, **call_kwargs)
    return standardize_results(r_to_pandas(res_r))
