"""
Build a DESeqDataSet using DESeq2::DESeqDataSetFromMatrix.

This module provides the DESeqModel dataclass that carries the R object
through collapsing, fitting and testing, and the deseq_dataset function
that creates it from a CountDataset.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, TypeVar
import logging
import pandas as pd

from ..checks import check_dataset, check_assay_exists
from .checks import check_design_formula
from .utils import _prep_deseq2, counts_to_r_matrix, coldata_to_r

logger = logging.getLogger(__name__)

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


@dataclass
class DESeqConfig:
    """Settings used while building and fitting the model."""
    design: str = "~ condition"
    assay: str = "counts"
    collapsed_by: Optional[str] = None
    test: Optional[str] = None
    fit_type: Optional[str] = None
    sf_type: Optional[str] = None
    reduced: Optional[str] = None
    user_kwargs: Optional[Dict[str, Any]] = None


@dataclass
class DESeqModel:
    """Container for a DESeq2 DESeqDataSet and its Python-side annotations.

    Operations return new DESeqModel instances; the R object of an
    existing model is never modified.

    Attributes:
        sample_names: Column names of the DESeqDataSet.
        feature_names: Row names (gene identifiers).
        column_data: Sample annotations as pandas, aligned to sample_names.
        dds: R DESeqDataSet.
        config: Build and fit settings.
        fitted: True once DESeq() has run.
        metadata: Optional additional metadata.
    """
    sample_names: List[str] = field(default_factory=list)
    feature_names: List[str] = field(default_factory=list)
    column_data: Optional[pd.DataFrame] = None
    dds: Optional[Any] = None
    config: DESeqConfig = field(default_factory=DESeqConfig)
    fitted: bool = False
    metadata: Optional[Dict[str, Any]] = None

    @property
    def design(self) -> str:
        return self.config.design

    @property
    def condition_levels(self) -> List[str]:
        """Levels of ``condition``, reference first."""
        condition = self.column_data["condition"]
        if isinstance(condition.dtype, pd.CategoricalDtype):
            return [str(c) for c in condition.cat.categories]
        return sorted(set(condition.astype(str)))

    def collapse_replicates(self, group_by: str = "subject", run: Optional[str] = None) -> "DESeqModel":
        """Convenience method that delegates to collapse_replicates()."""
        from .collapse_replicates import collapse_replicates as _collapse
        return _collapse(self, group_by=group_by, run=run)

    def deseq(self, **kwargs) -> "DESeqModel":
        """Convenience method that delegates to deseq()."""
        from .deseq import deseq as _deseq
        return _deseq(self, **kwargs)

    def results(
        self,
        contrast: Optional[Sequence[str]] = None,
        alpha: float = 0.05,
        **kwargs,
    ) -> pd.DataFrame:
        """
        Extract the results table of this fitted model.

        Example:
            >>> model = deseq2.deseq_dataset(ds).deseq()
            >>> res = model.results(alpha=0.05)
        """
        from .results import results as _results
        return _results(self, contrast=contrast, alpha=alpha, **kwargs)


def deseq_dataset(
    dataset: SE,
    design: str = "~ condition",
    assay: str = "counts",
) -> DESeqModel:
    """
    Build a DESeqDataSet from a CountDataset.

    Wraps ``DESeq2::DESeqDataSetFromMatrix``. Counts are sent to R as an
    integer matrix and sample annotations as a data.frame of factors, with
    the reference condition level first.

    Args:
        dataset: CountDataset (or any SummarizedExperiment with a
            ``column_data_df``-compatible column data).
        design: One-sided R formula over sample annotation columns.
            Default: "~ condition".
        assay: Counts assay name. Default: "counts".

    Returns:
        DESeqModel: Unfitted model.

    Raises:
        TypeError: If dataset is not SummarizedExperiment-like.
        KeyError: If the assay or a design variable does not exist.

    Example:
        >>> import differential_counts.deseq2 as deseq2
        >>> model = deseq2.deseq_dataset(ds, design="~ subject + condition")
    """
    check_dataset(dataset)
    check_assay_exists(dataset, assay)

    if hasattr(dataset, "column_data_df"):
        column_data = dataset.column_data_df
    else:
        column_data = dataset.get_column_data().to_pandas()
    check_design_formula(design, column_data)

    counts = dataset.counts_frame(assay) if hasattr(dataset, "counts_frame") else pd.DataFrame(
        dataset.assays[assay],
        index=list(dataset.row_names),
        columns=list(dataset.column_names),
    )

    r, pkg = _prep_deseq2()
    logger.info(
        "Building DESeqDataSet: %d genes x %d samples, design %s",
        counts.shape[0], counts.shape[1], design,
    )
    dds = pkg.DESeqDataSetFromMatrix(
        countData=counts_to_r_matrix(counts),
        colData=coldata_to_r(column_data),
        design=r.ro.Formula(design),
    )

    return DESeqModel(
        sample_names=[str(s) for s in counts.columns],
        feature_names=[str(g) for g in counts.index],
        column_data=column_data,
        dds=dds,
        config=DESeqConfig(design=design, assay=assay),
        metadata=dict(getattr(dataset, "metadata", {}) or {}),
    )
