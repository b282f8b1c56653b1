"""
Variance-stabilized counts and PCA coordinates via DESeq2.

PCA itself is computed by ``DESeq2::plotPCA(returnData=TRUE)``.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Sequence, Tuple, Union
import logging
import numpy as np
import pandas as pd

from .checks import check_deseq_model
from .dataset import DESeqModel
from .utils import _prep_deseq2, _bioc, r_to_pandas, r_matrix_to_frame

logger = logging.getLogger(__name__)


@dataclass
class TransformedCounts:
    """Variance-stabilized values plus the R DESeqTransform they came from."""
    values: pd.DataFrame
    robj: Any
    blind: bool = True


def vst(
    model: DESeqModel,
    blind: bool = True,
    fit_type: str = "parametric",
    nsub: int = 1000,
) -> TransformedCounts:
    """
    Variance stabilizing transformation.

    Wraps ``DESeq2::vst``, falling back to
    ``DESeq2::varianceStabilizingTransformation`` when the dataset has fewer
    than `nsub` genes (vst() subsamples `nsub` rows).

    Args:
        model: DESeqModel (fitted or not).
        blind: Ignore the design when estimating dispersions. Default: True.
        fit_type: Dispersion trend type. Default: "parametric".
        nsub: Genes subsampled by vst(). Default: 1000.

    Returns:
        TransformedCounts
    """
    check_deseq_model(model)
    r, pkg = _prep_deseq2()
    _, summarized = _bioc()

    if len(model.feature_names) < nsub:
        vsd = pkg.varianceStabilizingTransformation(model.dds, blind=blind, fitType=fit_type)
    else:
        vsd = pkg.vst(model.dds, blind=blind, nsub=nsub, fitType=fit_type)

    values = r_matrix_to_frame(summarized.assay(vsd))
    return TransformedCounts(values=values, robj=vsd, blind=blind)


def pca_data(
    source: Union[DESeqModel, TransformedCounts],
    intgroup: Sequence[str] = ("condition",),
    ntop: int = 500,
) -> Tuple[pd.DataFrame, np.ndarray]:
    """
    PCA coordinates of samples from variance-stabilized counts.

    Wraps ``DESeq2::plotPCA(..., returnData=TRUE)`` on the top `ntop`
    most variable genes.

    Args:
        source: A DESeqModel (vst() is applied with blind=True) or
            TransformedCounts.
        intgroup: Sample annotation columns attached to the output.
        ntop: Number of most variable genes used. Default: 500.

    Returns:
        Tuple[pd.DataFrame, np.ndarray]: Per-sample ``PC1``, ``PC2``,
        ``group``, the `intgroup` columns and ``name``; and the fraction of
        variance explained by PC1 and PC2.

    Example:
        >>> pca, percent_var = deseq2.pca_data(model)
        >>> pca[["PC1", "PC2", "condition"]]
    """
    if isinstance(source, DESeqModel):
        source = vst(source, blind=True)
    if not isinstance(source, TransformedCounts):
        raise TypeError(
            f"Expected a DESeqModel or TransformedCounts, got {type(source).__name__}"
        )

    r, pkg = _prep_deseq2()
    pca_r = pkg.plotPCA(
        source.robj,
        intgroup=r.StrVector(list(intgroup)),
        ntop=ntop,
        returnData=True,
    )
    percent_var = np.asarray(r.r2py(r.ro.baseenv["attr"](pca_r, "percentVar")), dtype=float)
    pca = r_to_pandas(pca_r)
    pca.index.name = "sample"
    return pca, percent_var
