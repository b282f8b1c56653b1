"""
Run the DESeq2 pipeline using DESeq2::DESeq.

DESeq() estimates size factors and dispersions, fits the negative binomial
GLM and runs the Wald or likelihood-ratio test in one call.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Optional
import logging

from .checks import check_deseq_model
from .dataset import DESeqModel
from .utils import _prep_deseq2

logger = logging.getLogger(__name__)

_TESTS = ("Wald", "LRT")
_FIT_TYPES = ("parametric", "local", "mean", "glmGamPoi")
_SF_TYPES = ("ratio", "poscounts", "iterate")


def deseq(
    model: DESeqModel,
    test: str = "Wald",
    fit_type: str = "parametric",
    sf_type: str = "ratio",
    reduced: Optional[str] = None,
    min_replicates_for_replace: int = 7,
    quiet: bool = True,
    **kwargs,
) -> DESeqModel:
    """
    Fit the DESeq2 model.

    Wraps ``DESeq2::DESeq`` (single-threaded, ``parallel=FALSE``).

    Args:
        model: DESeqModel from deseq_dataset() or collapse_replicates().
        test: "Wald" or "LRT". Default: "Wald".
        fit_type: Dispersion trend: "parametric", "local", "mean" or
            "glmGamPoi". Default: "parametric".
        sf_type: Size factor estimator: "ratio", "poscounts" or "iterate".
        reduced: Reduced formula, required for test="LRT".
        min_replicates_for_replace: Minimum replicates before outlier counts
            are replaced. Default: 7 (DESeq2 default).
        quiet: Suppress DESeq2 progress messages. Default: True.
        **kwargs: Additional args forwarded to R function.

    Returns:
        DESeqModel: New fitted model.

    Raises:
        ValueError: On an unknown option or a missing reduced formula.

    Example:
        >>> model = deseq2.deseq(deseq2.deseq_dataset(ds))
        >>> model.fitted
        True
    """
    check_deseq_model(model)
    if test not in _TESTS:
        raise ValueError(f"`test` must be one of {_TESTS}, got {test!r}")
    if fit_type not in _FIT_TYPES:
        raise ValueError(f"`fit_type` must be one of {_FIT_TYPES}, got {fit_type!r}")
    if sf_type not in _SF_TYPES:
        raise ValueError(f"`sf_type` must be one of {_SF_TYPES}, got {sf_type!r}")
    if test == "LRT" and reduced is None:
        raise ValueError("test='LRT' requires a `reduced` formula, e.g. '~ 1'")

    r, pkg = _prep_deseq2()
    reduced_r = r.ro.Formula(reduced) if reduced is not None else None

    call_kwargs = {
        "test": test,
        "fitType": fit_type,
        "sfType": sf_type,
        "minReplicatesForReplace": min_replicates_for_replace,
        "quiet": quiet,
        "parallel": False,
    }
    if reduced_r is not None:
        call_kwargs["reduced"] = reduced_r
    call_kwargs.update(kwargs)

    logger.info(
        "Running DESeq (%s test, %s fit) on %d samples",
        test, fit_type, len(model.sample_names),
    )
    dds = pkg.DESeq(model.dds, **call_kwargs)

    config = replace(
        model.config,
        test=test,
        fit_type=fit_type,
        sf_type=sf_type,
        reduced=reduced,
        user_kwargs=kwargs if kwargs else None,
    )
    return replace(model, dds=dds, config=config, fitted=True)
