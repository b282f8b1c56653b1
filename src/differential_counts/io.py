"""
Reading count matrices and sample metadata, writing results tables.

Count matrices are CSV files with a header row, gene identifiers in the
first column and one integer count column per sample. Sources can be local
paths or URLs (http, https, ftp, file); pandas does the fetching.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import pandas as pd

from .checks import (
    check_columns,
    check_count_matrix,
    check_same_length,
    check_two_levels,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_URL_SCHEMES = ("http://", "https://", "ftp://", "file://")


def is_url(source: PathLike) -> bool:
    """Return True if `source` should be fetched rather than opened from disk."""
    return isinstance(source, str) and source.lower().startswith(_URL_SCHEMES)


def load_count_matrix(
    source: PathLike,
    index_col: int = 0,
    sep: str = ",",
    **read_kwargs: Any,
) -> pd.DataFrame:
    """
    Load a genes × samples raw count matrix.

    Args:
        source: Local path or URL of the CSV file.
        index_col: Column holding the gene identifiers. Default: 0.
        sep: Field separator. Default: ",".
        **read_kwargs: Forwarded to ``pandas.read_csv``.

    Returns:
        pd.DataFrame: int64 counts indexed by gene, one column per sample.

    Raises:
        FileNotFoundError: If a local path does not exist.
        ValueError: If the matrix is empty, has duplicate labels, or holds
            values that are not non-negative integers.

    Example:
        >>> counts = load_count_matrix("https://example.org/counts.csv")
        >>> counts.shape
        (20000, 8)
    """
    if is_url(source):
        logger.info("Fetching count matrix from %s", source)
    else:
        source = Path(source)
        if not source.exists():
            raise FileNotFoundError(f"Count matrix not found: {source}")
        logger.info("Reading count matrix from %s", source)

    counts = pd.read_csv(source, index_col=index_col, sep=sep, **read_kwargs)
    counts.index = counts.index.astype(str)
    counts.index.name = "gene"
    counts.columns = [str(c) for c in counts.columns]

    check_count_matrix(counts)
    counts = counts.astype("int64")

    logger.info("Loaded %d genes x %d samples", counts.shape[0], counts.shape[1])
    return counts


def build_sample_metadata(
    samples: Sequence[str],
    conditions: Sequence[Any],
    subjects: Sequence[Any],
    runs: Optional[Sequence[Any]] = None,
    reference: Optional[Any] = None,
) -> pd.DataFrame:
    """
    Build the per-sample metadata table.

    Args:
        samples: Sample names, matching the count matrix columns.
        conditions: Condition label per sample; exactly two levels.
        subjects: Subject identifier per sample.
        runs: Optional sequencing run identifier per sample.
        reference: Condition level used as the denominator of the effect.
            Default: the alphabetically first level, as R's factor() does.

    Returns:
        pd.DataFrame indexed by sample with columns ``condition``
        (categorical, reference level first), ``subject`` and optionally ``run``.

    Raises:
        ValueError: On length mismatch, duplicate samples, a condition
            vector without exactly two levels, or an unknown reference.

    Example:
        >>> meta = build_sample_metadata(
        ...     ["s1", "s2", "s3", "s4"],
        ...     ["ctrl", "ctrl", "treated", "treated"],
        ...     ["p1", "p2", "p1", "p2"],
        ...     reference="ctrl",
        ... )
    """
    samples = [str(s) for s in samples]
    n = len(samples)
    check_same_length(n, conditions, "conditions")
    check_same_length(n, subjects, "subjects")
    if runs is not None:
        check_same_length(n, runs, "runs")

    dup = pd.Index(samples)[pd.Index(samples).duplicated()].unique().tolist()
    if dup:
        raise ValueError(f"Duplicate sample names: {dup[:5]}")

    conditions = [str(c) for c in conditions]
    levels = sorted(check_two_levels(conditions))
    if reference is not None:
        reference = str(reference)
        if reference not in levels:
            raise ValueError(f"Reference level {reference!r} not in conditions {levels}")
        levels = [reference] + [lvl for lvl in levels if lvl != reference]

    metadata = pd.DataFrame(
        {
            "condition": pd.Categorical(conditions, categories=levels),
            "subject": [str(s) for s in subjects],
        },
        index=pd.Index(samples, name="sample"),
    )
    if runs is not None:
        metadata["run"] = [str(r) for r in runs]
    return metadata


def load_sample_metadata(
    source: PathLike,
    sample_col: str = "sample",
    condition_col: str = "condition",
    subject_col: str = "subject",
    run_col: Optional[str] = None,
    reference: Optional[Any] = None,
    sep: str = ",",
) -> pd.DataFrame:
    """
    Read sample metadata from CSV and normalize it with build_sample_metadata.

    Raises:
        KeyError: If one of the named columns is missing.
    """
    logger.info("Reading sample metadata from %s", source)
    raw = pd.read_csv(source, sep=sep, dtype=str)
    columns = [sample_col, condition_col, subject_col]
    if run_col is not None:
        columns.append(run_col)
    check_columns(raw, columns, "metadata")

    return build_sample_metadata(
        samples=raw[sample_col].tolist(),
        conditions=raw[condition_col].tolist(),
        subjects=raw[subject_col].tolist(),
        runs=raw[run_col].tolist() if run_col is not None else None,
        reference=reference,
    )


def write_results(results: pd.DataFrame, path: PathLike) -> Path:
    """
    Persist a results table as CSV, gene identifier first.

    Returns:
        Path: The written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    df = results
    if "gene" not in df.columns:
        df = df.rename_axis("gene").reset_index()
    columns = ["gene"] + [c for c in df.columns if c != "gene"]
    df[columns].to_csv(path, index=False)

    logger.info("Wrote %d result rows to %s", len(df), path)
    return path
