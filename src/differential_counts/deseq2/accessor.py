"""
DESeq2 accessor for CountDataset.

Provides the dataset-level DESeq2 entry points via the accessor pattern.

Usage:
    import differential_counts.deseq2  # Triggers accessor registration

    ds = CountDataset.from_frames(counts, metadata)
    model = ds.deseq2.run(collapse_by="subject")
    res = model.results()

All methods return new objects; the dataset is never modified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence
import pandas as pd

from ..countdataset import register_dataset_accessor

if TYPE_CHECKING:
    from ..countdataset import CountDataset
    from .dataset import DESeqModel


@register_dataset_accessor("deseq2")
class DESeq2Accessor:
    """
    Accessor providing DESeq2 methods on a CountDataset.

    Attributes:
        _dataset: Reference to the parent CountDataset.
    """

    def __init__(self, dataset: CountDataset) -> None:
        self._dataset = dataset

    def deseq_dataset(self, design: str = "~ condition", assay: str = "counts") -> DESeqModel:
        """Build an unfitted DESeqModel. See :func:`deseq_dataset`."""
        from .dataset import deseq_dataset
        return deseq_dataset(self._dataset, design=design, assay=assay)

    def run(
        self,
        design: str = "~ condition",
        collapse_by: Optional[str] = None,
        run: Optional[str] = None,
        assay: str = "counts",
        **deseq_kwargs,
    ) -> DESeqModel:
        """
        Build, optionally collapse technical replicates, and fit.

        Args:
            design: Design formula. Default: "~ condition".
            collapse_by: Sample annotation to collapse replicates on, or None.
            run: Run annotation recorded while collapsing.
            assay: Counts assay name.
            **deseq_kwargs: Forwarded to :func:`deseq`.

        Returns:
            DESeqModel: Fitted model.

        Example:
            >>> model = ds.deseq2.run(collapse_by="subject")
        """
        from .collapse_replicates import collapse_replicates
        from .deseq import deseq

        model = self.deseq_dataset(design=design, assay=assay)
        if collapse_by is not None:
            model = collapse_replicates(model, group_by=collapse_by, run=run)
        return deseq(model, **deseq_kwargs)

    def results(
        self,
        contrast: Optional[Sequence[str]] = None,
        alpha: float = 0.05,
        design: str = "~ condition",
        collapse_by: Optional[str] = None,
    ) -> pd.DataFrame:
        """Fit with :meth:`run` and return the results table."""
        model = self.run(design=design, collapse_by=collapse_by)
        return model.results(contrast=contrast, alpha=alpha)
