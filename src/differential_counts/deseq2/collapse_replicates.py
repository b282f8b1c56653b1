"""
Sum technical replicates using DESeq2::collapseReplicates.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Optional
import logging
import pandas as pd

from ..checks import check_columns
from .checks import check_not_fitted
from .dataset import DESeqModel
from .utils import _prep_deseq2, first_appearance

logger = logging.getLogger(__name__)


def collapse_replicates(
    model: DESeqModel,
    group_by: str = "subject",
    run: Optional[str] = None,
) -> DESeqModel:
    """
    Collapse technical replicates into one column per group.

    Wraps ``DESeq2::collapseReplicates``: counts of columns sharing a
    `group_by` value are summed, the annotations of the first column of each
    group are kept and columns are renamed to the group value. Groups keep
    their order of first appearance.

    Args:
        model: Unfitted DESeqModel.
        group_by: Sample annotation column identifying the biological sample
            each technical replicate belongs to. Default: "subject".
        run: Optional annotation column with run identifiers; the collapsed
            runs are recorded in a ``runsCollapsed`` column.

    Returns:
        DESeqModel: New model with one column per group.

    Raises:
        KeyError: If `group_by` or `run` is not a sample annotation column.
        ValueError: If the model is already fitted or a group spans more
            than one condition level.

    Example:
        >>> model = deseq2.collapse_replicates(model, group_by="subject", run="run")
    """
    check_not_fitted(model, "collapse_replicates()")
    coldata = model.column_data
    columns = [group_by] + ([run] if run is not None else [])
    check_columns(coldata, columns, "sample metadata")

    groups = coldata[group_by].astype(str)
    if "condition" in coldata.columns:
        per_group = coldata.groupby(groups, sort=False, observed=True)["condition"].nunique()
        mixed = per_group[per_group > 1].index.tolist()
        if mixed:
            raise ValueError(
                f"Cannot collapse replicates: groups {mixed[:5]} span more than one condition"
            )

    levels = first_appearance(groups)
    if len(levels) == len(groups):
        logger.info("No technical replicates to collapse on %r", group_by)
        return replace(model, config=replace(model.config, collapsed_by=group_by))

    r, pkg = _prep_deseq2()
    groupby_r = r.FactorVector(r.StrVector(groups.tolist()), levels=r.StrVector(levels))
    call_kwargs = {"groupby": groupby_r, "renameCols": True}
    # collapseReplicates checks `run` whenever it is supplied, even as NULL
    if run is not None:
        call_kwargs["run"] = r.StrVector(coldata[run].astype(str).tolist())

    dds = pkg.collapseReplicates(model.dds, **call_kwargs)

    first_rows = [groups.tolist().index(level) for level in levels]
    new_coldata = coldata.iloc[first_rows].copy()
    new_coldata.index = pd.Index(levels, name=coldata.index.name or "sample")
    if run is not None:
        new_coldata["runsCollapsed"] = [
            ",".join(coldata.loc[(groups == level).to_numpy(), run].astype(str))
            for level in levels
        ]

    logger.info("Collapsed %d columns into %d groups by %r", len(groups), len(levels), group_by)
    return replace(
        model,
        sample_names=levels,
        column_data=new_coldata,
        dds=dds,
        config=replace(model.config, collapsed_by=group_by),
    )
