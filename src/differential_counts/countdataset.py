"""
CountDataset: a SummarizedExperiment binding raw counts to sample metadata.

The counts assay stays a NumPy array on the Python side; R-backed functions
convert it on demand. Condition levels are kept in the experiment metadata
so the reference level survives the round trip through BiocFrame.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from biocframe import BiocFrame
from summarizedexperiment import SummarizedExperiment

from .checks import check_assay_exists, check_count_matrix, check_metadata
from .extensions import register_accessor

logger = logging.getLogger(__name__)

_LEVELS_KEY = "condition_levels"


class CountDataset(SummarizedExperiment):
    """
    Genes × samples raw counts with per-sample condition and subject labels.

    Use :meth:`from_frames` to build one from a counts DataFrame and the
    metadata produced by :func:`differential_counts.io.build_sample_metadata`.

    Example:
        >>> ds = CountDataset.from_frames(counts, metadata)
        >>> ds.shape
        (20000, 8)
        >>> ds.conditions[:2]
        ['ctrl', 'ctrl']
    """

    @classmethod
    def from_frames(
        cls,
        counts: pd.DataFrame,
        metadata: pd.DataFrame,
        assay: str = "counts",
        extra_metadata: Optional[Dict[str, Any]] = None,
    ) -> "CountDataset":
        """
        Build a dataset from a counts frame and a sample metadata frame.

        Metadata rows are matched to count columns by sample name. A
        metadata frame with a default RangeIndex is taken positionally.

        Args:
            counts: Genes × samples non-negative integer counts.
            metadata: One row per sample with ``condition`` and ``subject``.
            assay: Name for the counts assay. Default: "counts".
            extra_metadata: Additional entries for the experiment metadata.

        Returns:
            CountDataset

        Raises:
            ValueError: If counts are invalid or metadata cardinality does
                not match the number of samples.
        """
        check_count_matrix(counts)
        sample_names = [str(c) for c in counts.columns]
        check_metadata(metadata, sample_names)

        if isinstance(metadata.index, pd.RangeIndex):
            aligned = metadata.copy()
            aligned.index = pd.Index(sample_names, name="sample")
        else:
            aligned = metadata.loc[sample_names]

        condition = aligned["condition"]
        if isinstance(condition.dtype, pd.CategoricalDtype):
            levels = [str(c) for c in condition.cat.categories]
        else:
            levels = sorted(pd.unique(condition.astype(str)).tolist())

        columns = {
            col: [str(v) for v in aligned[col].tolist()] for col in aligned.columns
        }
        column_data = BiocFrame(columns, row_names=sample_names)

        meta = dict(extra_metadata or {})
        meta[_LEVELS_KEY] = levels

        return cls(
            assays={assay: counts.to_numpy(dtype=np.int64)},
            column_data=column_data,
            row_names=[str(g) for g in counts.index],
            column_names=sample_names,
            metadata=meta,
        )

    # ------- convenience getters -------

    def counts_frame(self, assay: str = "counts") -> pd.DataFrame:
        """Return an assay as a genes × samples DataFrame."""
        check_assay_exists(self, assay)
        return pd.DataFrame(
            np.asarray(self.assays[assay]),
            index=pd.Index(list(self.row_names), name="gene"),
            columns=list(self.column_names),
        )

    @property
    def condition_levels(self) -> List[str]:
        """Condition levels, reference level first."""
        levels = self.metadata.get(_LEVELS_KEY)
        if levels is None:
            levels = sorted(set(self.conditions))
        return list(levels)

    @property
    def column_data_df(self) -> pd.DataFrame:
        """Sample annotations as pandas, ``condition`` as an ordered categorical."""
        df = self.get_column_data().to_pandas()
        df.index = pd.Index(list(self.column_names), name="sample")
        if "condition" in df.columns:
            df["condition"] = pd.Categorical(
                df["condition"].astype(str), categories=self.condition_levels
            )
        return df

    @property
    def conditions(self) -> List[str]:
        return [str(v) for v in self.get_column_data()["condition"]]

    @property
    def subjects(self) -> List[str]:
        return [str(v) for v in self.get_column_data()["subject"]]

    # ------- transformations -------

    def filter_low_counts(self, min_total: int = 10, assay: str = "counts") -> "CountDataset":
        """
        Keep genes whose total count across samples is at least `min_total`.

        Returns:
            CountDataset: A new dataset; the original is untouched.
        """
        counts = self.counts_frame(assay)
        keep = counts.sum(axis=1) >= min_total
        logger.info(
            "Keeping %d of %d genes with at least %d total reads",
            int(keep.sum()), len(keep), min_total,
        )
        extra = {k: v for k, v in self.metadata.items() if k != _LEVELS_KEY}
        metadata = self.column_data_df
        return CountDataset.from_frames(
            counts.loc[keep], metadata, assay=assay, extra_metadata=extra
        )


def register_dataset_accessor(name: str):
    """Register an accessor class on :class:`CountDataset` under `name`.

    Example:
        >>> @register_dataset_accessor("deseq2")
        ... class DESeq2Accessor:
        ...     def __init__(self, dataset):
        ...         self._dataset = dataset
    """
    return register_accessor(CountDataset, name)
