from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, List, Sequence

import numpy as np
import pandas as pd

from ..r_env import get_r_environment

# DESeqResults column -> standardized column
RESULT_COLUMNS = {
    "baseMean": "base_mean",
    "log2FoldChange": "log2_fold_change",
    "lfcSE": "lfc_se",
    "stat": "stat",
    "pvalue": "p_value",
    "padj": "adj_p_value",
}


@lru_cache(maxsize=1)
def _prep_deseq2():
    """Lazily prepare the DESeq2 runtime.

    Returns:
        Tuple[Any, Any]: A tuple ``(r_env, deseq2_pkg)`` where ``r_env`` is
        the lazy rpy2 environment and ``deseq2_pkg`` the imported R
        ``DESeq2`` package.

    Notes:
        The result is cached (LRU) to avoid repeated imports.
    """
    r = get_r_environment()
    deseq2_pkg = r.lazy_import_r_packages("DESeq2")
    return r, deseq2_pkg


@lru_cache(maxsize=1)
def _bioc():
    """Return the ``(BiocGenerics, SummarizedExperiment)`` R packages."""
    r = get_r_environment()
    return r.lazy_import_r_packages(["BiocGenerics", "SummarizedExperiment"])


def counts_to_r_matrix(counts: pd.DataFrame) -> Any:
    """Convert a genes × samples count frame to an R integer matrix with dimnames."""
    r = get_r_environment()
    arr = np.asarray(counts, dtype=np.int32)
    nrow, ncol = arr.shape
    # R matrices are column-major
    values = r.IntVector(arr.ravel(order="F").tolist())
    dimnames = r.ro.baseenv["list"](
        r.StrVector([str(g) for g in counts.index]),
        r.StrVector([str(s) for s in counts.columns]),
    )
    return r.ro.baseenv["matrix"](values, nrow=nrow, ncol=ncol, dimnames=dimnames)


def coldata_to_r(column_data: pd.DataFrame) -> Any:
    """
    Convert sample annotations to an R data.frame of factors.

    Categorical columns keep their category order as factor levels; other
    columns become factors with levels in order of first appearance.
    """
    r = get_r_environment()
    columns = {}
    for col in column_data.columns:
        values = column_data[col]
        if isinstance(values.dtype, pd.CategoricalDtype):
            levels = [str(c) for c in values.cat.categories]
        else:
            levels = [str(v) for v in pd.unique(values.astype(str))]
        columns[col] = r.FactorVector(
            r.StrVector([str(v) for v in values]), levels=r.StrVector(levels)
        )
    columns["row.names"] = r.StrVector([str(s) for s in column_data.index])
    columns["check.names"] = False
    return r.ro.baseenv["data.frame"](**columns)


def r_to_pandas(obj: Any) -> pd.DataFrame:
    """Convert an R DataFrame-like object (data.frame, DESeqResults) to pandas."""
    r = get_r_environment()
    biocgenerics, _ = _bioc()
    return r.r2py(biocgenerics.as_data_frame(obj))


def r_matrix_to_frame(rmat: Any) -> pd.DataFrame:
    """Convert an R matrix with dimnames to a labelled DataFrame."""
    r = get_r_environment()
    values = np.asarray(r.r2py(rmat))
    rownames = list(r.ro.baseenv["rownames"](rmat))
    colnames = list(r.ro.baseenv["colnames"](rmat))
    return pd.DataFrame(values, index=pd.Index(rownames, name="gene"), columns=colnames)


def r_is_null(obj: Any) -> bool:
    r = get_r_environment()
    return bool(r.ro.baseenv["is.null"](obj)[0])


def standardize_results(df: pd.DataFrame) -> pd.DataFrame:
    """Move row names into a ``gene`` column and use snake_case column names."""
    df = df.reset_index(names="gene")
    df["gene"] = df["gene"].astype(str)
    return df.rename(columns=RESULT_COLUMNS)


def formula_variables(design: str) -> List[str]:
    """Return the variable names used on the right-hand side of an R formula."""
    rhs = design.split("~", 1)[-1]
    names = re.findall(r"[A-Za-z.][A-Za-z0-9._]*", rhs)
    return [n for n in dict.fromkeys(names)]


def first_appearance(values: Sequence[Any]) -> List[str]:
    return [str(v) for v in dict.fromkeys(str(v) for v in values)]
