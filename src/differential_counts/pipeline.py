"""
End-to-end two-condition differential expression run.

    load counts -> attach metadata -> CountDataset -> (filter) ->
    DESeqDataSet -> collapse replicates -> DESeq -> results ->
    sort / filter -> write

Run from the environment with ``python -m differential_counts.pipeline``
after setting ``DIFFCOUNTS_COUNTS_SOURCE`` and ``DIFFCOUNTS_METADATA_SOURCE``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from .config import PipelineSettings
from .countdataset import CountDataset
from .io import build_sample_metadata, load_count_matrix, load_sample_metadata, write_results
from .checks import check_columns, check_same_length
from .results_table import (
    ResultsSummary,
    check_results_integrity,
    filter_significant,
    sort_by_adjusted_pvalue,
    summarize_results,
)

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def setup_logger(
    logger_name: str = "differential_counts",
    log_path: Optional[Path] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """Attach a stream handler, and a file handler when `log_path` is given."""
    log = logging.getLogger(logger_name)
    log.setLevel(level)
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    formatter = logging.Formatter(_LOG_FORMAT)
    if log_path is not None:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        fh.setFormatter(formatter)
        log.addHandler(fh)
    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    log.addHandler(sh)
    return log


@dataclass
class PipelineResult:
    """Everything one run produced."""
    dataset: CountDataset
    model: Any
    results: pd.DataFrame
    significant: pd.DataFrame
    summary: ResultsSummary
    written: Dict[str, Path] = field(default_factory=dict)


def prepare_metadata(
    metadata: pd.DataFrame,
    settings: PipelineSettings,
    sample_names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Normalize a user metadata frame to the ``condition`` / ``subject`` / ``run`` layout.

    A frame without a sample column and with a default RangeIndex is taken
    positionally: its rows are labelled with `sample_names`, the count
    matrix columns.
    """
    df = metadata
    if settings.sample_col in df.columns:
        df = df.set_index(settings.sample_col)
    elif isinstance(df.index, pd.RangeIndex) and sample_names is not None:
        check_same_length(len(df), sample_names, "sample_names")
        df = df.set_axis([str(s) for s in sample_names], axis=0)
    columns = [settings.condition_col, settings.subject_col]
    if settings.run_col is not None:
        columns.append(settings.run_col)
    check_columns(df, columns, "metadata")

    reference = settings.reference_level
    condition = df[settings.condition_col]
    if reference is None and isinstance(condition.dtype, pd.CategoricalDtype):
        reference = str(condition.cat.categories[0])

    return build_sample_metadata(
        samples=[str(s) for s in df.index],
        conditions=condition.astype(str).tolist(),
        subjects=df[settings.subject_col].tolist(),
        runs=df[settings.run_col].tolist() if settings.run_col is not None else None,
        reference=reference,
    )


def build_dataset(
    settings: PipelineSettings,
    metadata: Optional[pd.DataFrame] = None,
) -> CountDataset:
    """Load counts and metadata and bind them into a CountDataset."""
    counts = load_count_matrix(settings.counts_source)

    if metadata is not None:
        metadata = prepare_metadata(metadata, settings, sample_names=counts.columns)
    elif settings.metadata_source is not None:
        metadata = load_sample_metadata(
            settings.metadata_source,
            sample_col=settings.sample_col,
            condition_col=settings.condition_col,
            subject_col=settings.subject_col,
            run_col=settings.run_col,
            reference=settings.reference_level,
        )
    else:
        raise ValueError(
            "Sample metadata is required: pass `metadata` or set metadata_source"
        )

    dataset = CountDataset.from_frames(
        counts, metadata, extra_metadata={"counts_source": settings.counts_source}
    )
    if settings.min_total_count > 0:
        dataset = dataset.filter_low_counts(settings.min_total_count)
    return dataset


def run_pipeline(
    settings: PipelineSettings,
    metadata: Optional[pd.DataFrame] = None,
    configure_logging: bool = True,
) -> PipelineResult:
    """
    Run the full analysis described by `settings`.

    Args:
        settings: Pipeline settings.
        metadata: Optional sample metadata frame; otherwise read from
            ``settings.metadata_source``.
        configure_logging: Attach handlers via setup_logger when
            ``settings.log_path`` is set. Default: True.

    Returns:
        PipelineResult: dataset, fitted model, sorted results, significant
        subset, summary and the files written.

    Example:
        >>> settings = PipelineSettings(counts_source="counts.csv",
        ...                             metadata_source="samples.csv",
        ...                             collapse_by="subject",
        ...                             output_path="results.csv")
        >>> out = run_pipeline(settings)
        >>> out.summary.significant
    """
    if configure_logging and settings.log_path is not None:
        setup_logger("differential_counts", settings.log_path)

    dataset = build_dataset(settings, metadata)
    logger.info(
        "Dataset: %d genes x %d samples, conditions %s",
        dataset.shape[0], dataset.shape[1], dataset.condition_levels,
    )

    # Imported here so that R is only required once a fit is requested
    from . import deseq2

    model = deseq2.deseq_dataset(dataset, design=settings.design)
    if settings.collapse_by is not None:
        run = "run" if settings.run_col is not None else None
        model = deseq2.collapse_replicates(model, group_by=settings.collapse_by, run=run)
    model = deseq2.deseq(model)

    res = deseq2.results(model, alpha=settings.alpha)
    check_results_integrity(res)
    res = sort_by_adjusted_pvalue(res)
    significant = filter_significant(res, settings.alpha, settings.lfc_threshold)
    summary = summarize_results(res, settings.alpha, settings.lfc_threshold)
    logger.info(
        "%d of %d genes significant at adjusted p < %g (%d up, %d down, %d without adjusted p)",
        summary.significant, summary.tested, summary.threshold,
        summary.up, summary.down, summary.missing_adj_p_value,
    )

    written: Dict[str, Path] = {}
    if settings.output_path is not None:
        written["results"] = write_results(res, settings.output_path)
    if settings.volcano_path is not None:
        written["volcano"] = _write_volcano(res, settings)
    if settings.pca_path is not None:
        written["pca"] = _write_pca(model, settings, deseq2)

    return PipelineResult(
        dataset=dataset,
        model=model,
        results=res,
        significant=significant,
        summary=summary,
        written=written,
    )


def _write_volcano(res: pd.DataFrame, settings: PipelineSettings) -> Path:
    import matplotlib.pyplot as plt
    from .plotting import volcano_plot

    path = Path(settings.volcano_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig = volcano_plot(
        res,
        fdr_threshold=settings.alpha,
        title=res.attrs.get("comparison", "Volcano Plot"),
        save_path=str(path),
    )
    plt.close(fig)
    return path


def _write_pca(model: Any, settings: PipelineSettings, deseq2: Any) -> Path:
    import matplotlib.pyplot as plt
    from .plotting import pca_plot

    path = Path(settings.pca_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pca, percent_var = deseq2.pca_data(model, intgroup=("condition",))
    fig = pca_plot(pca, percent_var, hue="condition", label_col="name", save_path=str(path))
    plt.close(fig)
    return path


def main() -> None:
    settings = PipelineSettings()
    setup_logger("differential_counts", settings.log_path)
    run_pipeline(settings, configure_logging=False)


if __name__ == "__main__":
    main()
