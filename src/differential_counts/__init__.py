"""differential_counts: two-condition RNA-seq differential expression with DESeq2.

This package loads raw count matrices and sample metadata, binds them in a
BiocPy SummarizedExperiment and delegates the statistics to the R DESeq2
package via rpy2. The ``deseq2`` submodule is loaded lazily so that nothing
touches R until a fit is requested.

Usage:
    >>> import differential_counts as dc
    >>> counts = dc.load_count_matrix("https://example.org/counts.csv")
    >>> meta = dc.build_sample_metadata(counts.columns, conditions, subjects)
    >>> ds = dc.CountDataset.from_frames(counts, meta)
    >>> # DESeq2 is NOT loaded yet - no R dependency check
    >>>
    >>> import differential_counts.deseq2  # NOW DESeq2 is checked/installed
    >>> model = ds.deseq2.run(collapse_by="subject")
"""

from __future__ import annotations

import importlib
import logging

# Core exports that don't require R
from .countdataset import CountDataset
from .config import PipelineSettings
from .io import (
    is_url,
    load_count_matrix,
    build_sample_metadata,
    load_sample_metadata,
    write_results,
)
from .results_table import (
    ResultsSummary,
    sort_by_adjusted_pvalue,
    is_sorted_by_adjusted_pvalue,
    filter_significant,
    summarize_results,
    check_results_integrity,
)
from .pipeline import PipelineResult, run_pipeline, setup_logger
from .plotting import volcano_plot, pca_plot
from .r_utils import ensure_r_dependencies, is_r_package_installed, install_base_dependencies

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CountDataset",
    "PipelineSettings",
    "is_url",
    "load_count_matrix",
    "build_sample_metadata",
    "load_sample_metadata",
    "write_results",
    "ResultsSummary",
    "sort_by_adjusted_pvalue",
    "is_sorted_by_adjusted_pvalue",
    "filter_significant",
    "summarize_results",
    "check_results_integrity",
    "PipelineResult",
    "run_pipeline",
    "setup_logger",
    "volcano_plot",
    "pca_plot",
    "ensure_r_dependencies",
    "is_r_package_installed",
    "install_base_dependencies",
    # Lazy-loaded submodules
    "deseq2",
]

# Submodules to be lazily loaded
_LAZY_SUBMODULES = {"deseq2"}


def __getattr__(name: str):
    """Lazy loading of submodules per PEP 562."""
    if name in _LAZY_SUBMODULES:
        module = importlib.import_module(f".{name}", __name__)
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    """Include lazy submodules in dir() output."""
    return list(__all__)
