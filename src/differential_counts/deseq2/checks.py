"""
Input validation utilities for DESeq2 functions.

Provides centralized checks for DESeqModel inputs, design formulas and
contrasts.
"""

from __future__ import annotations
from typing import Any, Optional, Sequence
import pandas as pd

from .utils import formula_variables


def check_design_formula(design: Any, column_data: pd.DataFrame) -> None:
    """Check that `design` is a one-sided formula over existing sample columns."""
    if not isinstance(design, str):
        raise TypeError(f"Expected `design` to be a formula string, got {type(design).__name__}")
    if not design.strip().startswith("~"):
        raise ValueError(f"Design formula must start with '~', got {design!r}")
    variables = formula_variables(design)
    if not variables:
        raise ValueError(f"Design formula {design!r} names no variables")
    missing = [v for v in variables if v not in column_data.columns]
    if missing:
        raise KeyError(
            f"Design variables {missing} not found in sample metadata. "
            f"Available: {list(column_data.columns)}"
        )


def check_deseq_model(model: Any) -> None:
    """Check that input is a DESeqModel holding a DESeqDataSet."""
    from .dataset import DESeqModel
    if not isinstance(model, DESeqModel):
        raise TypeError(f"Expected a DESeqModel, got {type(model).__name__}")
    if model.dds is None:
        raise ValueError("DESeqModel.dds is None - no DESeqDataSet was built")


def check_fitted(model: Any) -> None:
    """Check that DESeq() has been run on the model."""
    check_deseq_model(model)
    if not model.fitted:
        raise ValueError("DESeqModel has not been fitted - call deseq(model) first")


def check_not_fitted(model: Any, operation: str) -> None:
    check_deseq_model(model)
    if model.fitted:
        raise ValueError(f"{operation} must run before deseq(); the model is already fitted")


def check_contrast(contrast: Optional[Sequence[str]], column_data: pd.DataFrame) -> None:
    """Check a ``(variable, numerator, denominator)`` contrast."""
    if contrast is None:
        return
    if len(contrast) != 3:
        raise ValueError(
            "`contrast` must be (variable, numerator_level, denominator_level), "
            f"got {tuple(contrast)}"
        )
    variable, numerator, denominator = (str(c) for c in contrast)
    if variable not in column_data.columns:
        raise KeyError(f"Contrast variable {variable!r} not found in sample metadata")
    levels = set(column_data[variable].astype(str))
    for level in (numerator, denominator):
        if level not in levels:
            raise ValueError(f"Level {level!r} not present in {variable!r}: {sorted(levels)}")
    if numerator == denominator:
        raise ValueError("Contrast numerator and denominator must differ")


def check_coef_or_contrast(coef: Optional[Any], contrast: Optional[Sequence]) -> None:
    """Check that exactly one of coef or contrast is provided."""
    if coef is None and contrast is None:
        raise ValueError("Either `coef` or `contrast` must be specified")
    if coef is not None and contrast is not None:
        raise ValueError("Specify either `coef` or `contrast`, not both")
