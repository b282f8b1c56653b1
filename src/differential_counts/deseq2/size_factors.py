"""
Size factors and normalized counts using DESeq2::estimateSizeFactors.
"""

from __future__ import annotations
from dataclasses import replace
import numpy as np
import pandas as pd

from .checks import check_deseq_model
from .dataset import DESeqModel
from .utils import _prep_deseq2, _bioc, r_is_null, r_matrix_to_frame


def estimate_size_factors(model: DESeqModel, type: str = "ratio") -> DESeqModel:
    """
    Estimate per-sample size factors.

    Wraps ``DESeq2::estimateSizeFactors``. DESeq() does this itself; call it
    directly only to inspect normalization before fitting.

    Args:
        model: DESeqModel from deseq_dataset().
        type: "ratio" (median-of-ratios), "poscounts" or "iterate".

    Returns:
        DESeqModel: New model whose DESeqDataSet carries size factors.
    """
    check_deseq_model(model)
    r, pkg = _prep_deseq2()
    dds = pkg.estimateSizeFactors(model.dds, type=type)
    return replace(model, dds=dds)


def size_factors(model: DESeqModel) -> pd.Series:
    """
    Return the size factor of each sample.

    Raises:
        ValueError: If size factors have not been estimated yet.
    """
    check_deseq_model(model)
    r, _ = _prep_deseq2()
    biocgenerics, _ = _bioc()
    sf = biocgenerics.sizeFactors(model.dds)
    if r_is_null(sf):
        raise ValueError("Size factors not estimated - call estimate_size_factors() or deseq() first")
    return pd.Series(
        np.asarray(r.r2py(sf), dtype=float),
        index=pd.Index(model.sample_names, name="sample"),
        name="size_factor",
    )


def normalized_counts(model: DESeqModel) -> pd.DataFrame:
    """
    Return counts divided by size factors.

    Wraps ``counts(dds, normalized=TRUE)``; size factors are estimated
    first when missing.

    Example:
        >>> norm = deseq2.normalized_counts(model)
        >>> norm.loc["GENE1"]
    """
    check_deseq_model(model)
    biocgenerics, _ = _bioc()
    if r_is_null(biocgenerics.sizeFactors(model.dds)):
        model = estimate_size_factors(model)
    rmat = biocgenerics.counts(model.dds, normalized=True)
    return r_matrix_to_frame(rmat)
