"""
Input validation utilities.

Provides centralized checks for count matrices, sample metadata, datasets
and results tables. All checks raise built-in exceptions.
"""

from __future__ import annotations
from typing import Any, Iterable, Optional, Sequence
import numpy as np
import pandas as pd

# R stores integer matrices as 32-bit ints
_R_INT_MAX = 2**31 - 1


def check_count_matrix(counts: Any, name: str = "counts") -> None:
    """Check that a counts frame holds non-negative integers with unique labels.

    Raises:
        TypeError: If counts is not a DataFrame.
        ValueError: If it is empty, has duplicate labels, non-numeric,
            missing, negative or fractional values.
    """
    if not isinstance(counts, pd.DataFrame):
        raise TypeError(
            f"Expected `{name}` to be a pandas DataFrame, got {type(counts).__name__}"
        )
    if counts.shape[0] == 0 or counts.shape[1] == 0:
        raise ValueError(f"`{name}` is empty (shape {counts.shape})")

    dup_genes = counts.index[counts.index.duplicated()].unique().tolist()
    if dup_genes:
        raise ValueError(f"Duplicate gene identifiers in `{name}`: {dup_genes[:5]}")
    dup_samples = counts.columns[counts.columns.duplicated()].unique().tolist()
    if dup_samples:
        raise ValueError(f"Duplicate sample names in `{name}`: {dup_samples[:5]}")

    non_numeric = [
        c for c in counts.columns if not pd.api.types.is_numeric_dtype(counts[c])
    ]
    if non_numeric:
        raise ValueError(f"Non-numeric sample columns in `{name}`: {non_numeric[:5]}")

    values = counts.to_numpy(dtype=float)
    if np.isnan(values).any():
        raise ValueError(f"`{name}` contains missing values")
    if (values < 0).any():
        raise ValueError(f"`{name}` contains negative values")
    if not np.all(np.floor(values) == values):
        raise ValueError(f"`{name}` contains non-integer values")
    if values.max() > _R_INT_MAX:
        raise ValueError(
            f"`{name}` contains values above {_R_INT_MAX}, which R cannot store as integers"
        )


def check_two_levels(values: Sequence[Any], name: str = "condition") -> list:
    """Check that a categorical vector has exactly two distinct levels.

    Returns:
        list: The levels in order of first appearance.
    """
    levels = list(pd.unique(pd.Series(list(values), dtype=object)))
    if any(pd.isna(level) for level in levels):
        raise ValueError(f"`{name}` contains missing labels")
    if len(levels) != 2:
        raise ValueError(
            f"`{name}` must have exactly two levels, got {len(levels)}: {levels}"
        )
    return levels


def check_same_length(n_expected: int, values: Sequence[Any], name: str) -> None:
    if len(values) != n_expected:
        raise ValueError(
            f"`{name}` has {len(values)} entries but expected {n_expected} (one per sample)"
        )


def check_columns(df: pd.DataFrame, columns: Iterable[str], name: str = "frame") -> None:
    """Check that all `columns` exist in `df`."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise KeyError(
            f"Missing columns in `{name}`: {missing}. Available: {list(df.columns)}"
        )


def check_metadata(
    metadata: Any,
    sample_names: Optional[Sequence[str]] = None,
    required: Sequence[str] = ("condition", "subject"),
) -> None:
    """Check sample metadata against the matrix columns.

    Raises:
        TypeError: If metadata is not a DataFrame.
        KeyError: If a required column is missing.
        ValueError: If cardinality does not match the sample count or sample
            names are missing from the metadata index.
    """
    if not isinstance(metadata, pd.DataFrame):
        raise TypeError(
            f"Expected `metadata` to be a pandas DataFrame, got {type(metadata).__name__}"
        )
    check_columns(metadata, required, "metadata")
    if sample_names is None:
        return
    if len(metadata) != len(sample_names):
        raise ValueError(
            f"Metadata has {len(metadata)} rows but the count matrix has "
            f"{len(sample_names)} samples"
        )
    if not isinstance(metadata.index, pd.RangeIndex):
        missing = [s for s in sample_names if s not in metadata.index]
        if missing:
            raise ValueError(f"Samples missing from metadata: {missing[:5]}")


def check_dataset(dataset: Any, name: str = "dataset") -> None:
    """Check that input is a SummarizedExperiment-like object.

    Accepts any object with assays and assay_names attributes.
    """
    for attr in ("assays", "assay_names"):
        if not hasattr(dataset, attr):
            raise TypeError(
                f"Expected `{name}` to be a SummarizedExperiment-like object, "
                f"got {type(dataset).__name__} which lacks '{attr}'"
            )


def check_assay_exists(dataset: Any, assay: str) -> None:
    """Check that the specified assay exists in the dataset."""
    if assay not in dataset.assay_names:
        available = list(dataset.assay_names)
        raise KeyError(f"Assay '{assay}' not found. Available assays: {available}")


def check_probability(value: float, name: str) -> None:
    """Check that a significance threshold lies strictly between 0 and 1."""
    if not 0.0 < float(value) < 1.0:
        raise ValueError(f"`{name}` must be in (0, 1), got {value}")
