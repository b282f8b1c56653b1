"""DESeq2: differential expression based on the negative binomial distribution.

This module provides Python wrappers for the R DESeq2 package via rpy2.
DESeq2 performs size-factor normalization, dispersion estimation and
shrinkage, GLM fitting, hypothesis testing and Benjamini–Hochberg
correction; this module only sequences its calls.

Functional API:
    >>> import differential_counts.deseq2 as deseq2
    >>> model = deseq2.deseq_dataset(ds, design="~ condition")
    >>> model = deseq2.collapse_replicates(model, group_by="subject")
    >>> model = deseq2.deseq(model)
    >>> res = deseq2.results(model, alpha=0.05)

Accessor API:
    >>> import differential_counts.deseq2
    >>> model = ds.deseq2.run(collapse_by="subject")
"""

# Check/install DESeq2 R package on module import
from ..r_utils import ensure_r_dependencies
ensure_r_dependencies(["DESeq2"])

# Functional API exports
from .dataset import deseq_dataset, DESeqModel, DESeqConfig
from .size_factors import estimate_size_factors, size_factors, normalized_counts
from .collapse_replicates import collapse_replicates
from .deseq import deseq
from .results import results, lfc_shrink, default_contrast
from .transform import vst, pca_data, TransformedCounts

# Importing the accessor registers `dataset.deseq2`
from .accessor import DESeq2Accessor

__all__ = [
    # Functional API
    "deseq_dataset",
    "estimate_size_factors",
    "size_factors",
    "normalized_counts",
    "collapse_replicates",
    "deseq",
    "results",
    "lfc_shrink",
    "default_contrast",
    "vst",
    "pca_data",
    # Model classes
    "DESeqModel",
    "DESeqConfig",
    "TransformedCounts",
    # Accessor
    "DESeq2Accessor",
]
