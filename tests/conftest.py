import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from differential_counts import CountDataset, build_sample_metadata


def _deseq2_available() -> bool:
    try:
        from rpy2.robjects.packages import isinstalled
        return bool(isinstalled("DESeq2"))
    except Exception:
        # rpy2 missing, or R itself not found
        return False


HAS_DESEQ2 = _deseq2_available()

requires_deseq2 = pytest.mark.skipif(
    not HAS_DESEQ2, reason="rpy2 with the DESeq2 R package is not available"
)


@pytest.fixture
def mock_counts():
    """100 genes x 6 samples; the first 20 genes are 3x higher in 'treated'."""
    rng = np.random.default_rng(42)
    counts = rng.negative_binomial(10, 0.3, size=(100, 6))
    counts[:20, 3:] = counts[:20, 3:] * 3
    genes = [f"Gene_{i:03d}" for i in range(100)]
    samples = [f"Sample_{i}" for i in range(6)]
    return pd.DataFrame(counts, index=pd.Index(genes, name="gene"), columns=samples)


@pytest.fixture
def mock_metadata(mock_counts):
    return build_sample_metadata(
        samples=mock_counts.columns,
        conditions=["control"] * 3 + ["treated"] * 3,
        subjects=["p1", "p2", "p3", "p1", "p2", "p3"],
        reference="control",
    )


@pytest.fixture
def mock_dataset(mock_counts, mock_metadata):
    return CountDataset.from_frames(mock_counts, mock_metadata)


@pytest.fixture
def replicate_counts():
    """8 sequencing runs: 4 libraries sequenced twice each."""
    rng = np.random.default_rng(7)
    counts = rng.negative_binomial(8, 0.3, size=(60, 8))
    genes = [f"G{i}" for i in range(60)]
    runs = [f"lib{i // 2 + 1}_run{i % 2 + 1}" for i in range(8)]
    return pd.DataFrame(counts, index=pd.Index(genes, name="gene"), columns=runs)


@pytest.fixture
def replicate_metadata(replicate_counts):
    libraries = [c.split("_")[0] for c in replicate_counts.columns]
    return build_sample_metadata(
        samples=replicate_counts.columns,
        conditions=["A", "A", "A", "A", "B", "B", "B", "B"],
        subjects=libraries,
        runs=[c.split("_")[1] for c in replicate_counts.columns],
        reference="A",
    )


@pytest.fixture
def results_frame():
    """A hand-made results table in gene order (not sorted)."""
    return pd.DataFrame({
        "gene": ["g1", "g2", "g3", "g4", "g5", "g6"],
        "base_mean": [100.0, 50.0, 10.0, 300.0, 1.0, 80.0],
        "log2_fold_change": [2.1, -1.5, 0.2, 0.9, np.nan, -0.4],
        "lfc_se": [0.3, 0.4, 0.5, 0.2, np.nan, 0.3],
        "stat": [7.0, -3.75, 0.4, 4.5, np.nan, -1.3],
        "p_value": [1e-6, 0.002, 0.7, 0.0001, np.nan, 0.2],
        "adj_p_value": [6e-6, 0.004, 0.7, 0.0003, np.nan, 0.24],
    })
