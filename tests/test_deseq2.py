"""
Tests for the DESeq2 wrappers with actual R conversion using rpy2.

This module builds DESeqDataSets from mock data, runs the workflow
end-to-end and checks the standardized Python-side outputs.
"""

import numpy as np
import pandas as pd
import pytest

from differential_counts import CountDataset, build_sample_metadata, check_results_integrity

from conftest import requires_deseq2

pytestmark = requires_deseq2

RESULT_COLUMNS = ["gene", "base_mean", "log2_fold_change", "lfc_se", "stat", "p_value", "adj_p_value"]


@pytest.fixture(scope="module")
def deseq2():
    import differential_counts.deseq2 as module
    return module


@pytest.fixture
def model(deseq2, mock_dataset):
    return deseq2.deseq_dataset(mock_dataset)


@pytest.fixture
def fitted(deseq2, model):
    return deseq2.deseq(model)


@pytest.fixture
def replicate_dataset(replicate_counts, replicate_metadata):
    return CountDataset.from_frames(replicate_counts, replicate_metadata)


def _raw_counts(model):
    from differential_counts.deseq2.utils import _bioc, r_matrix_to_frame
    biocgenerics, _ = _bioc()
    return r_matrix_to_frame(biocgenerics.counts(model.dds))


class TestDeseqDataset:

    def test_builds_unfitted_model(self, model, mock_counts):
        assert not model.fitted
        assert model.design == "~ condition"
        assert model.sample_names == list(mock_counts.columns)
        assert model.feature_names == list(mock_counts.index)
        assert model.condition_levels == ["control", "treated"]

    def test_counts_reach_r_unchanged(self, model, mock_counts):
        raw = _raw_counts(model)
        np.testing.assert_array_equal(raw.to_numpy(), mock_counts.to_numpy())
        assert list(raw.columns) == list(mock_counts.columns)

    def test_unknown_design_variable(self, deseq2, mock_dataset):
        with pytest.raises(KeyError, match="batch"):
            deseq2.deseq_dataset(mock_dataset, design="~ batch + condition")

    def test_design_without_tilde(self, deseq2, mock_dataset):
        with pytest.raises(ValueError):
            deseq2.deseq_dataset(mock_dataset, design="condition")

    def test_rejects_non_dataset(self, deseq2, mock_counts):
        with pytest.raises(TypeError):
            deseq2.deseq_dataset(mock_counts)


class TestSizeFactors:

    def test_not_estimated(self, deseq2, model):
        with pytest.raises(ValueError, match="not estimated"):
            deseq2.size_factors(model)

    def test_estimate(self, deseq2, model):
        sf = deseq2.size_factors(deseq2.estimate_size_factors(model))
        assert list(sf.index) == model.sample_names
        assert (sf > 0).all()
        # median-of-ratios factors have a geometric mean near one
        assert np.exp(np.log(sf).mean()) == pytest.approx(1.0, rel=0.2)

    def test_normalized_counts(self, deseq2, model, mock_counts):
        norm = deseq2.normalized_counts(model)
        sf = deseq2.size_factors(deseq2.estimate_size_factors(model))
        expected = mock_counts / sf.to_numpy()
        np.testing.assert_allclose(norm.to_numpy(), expected.to_numpy(), rtol=1e-8)


class TestCollapseReplicates:

    def test_sums_runs(self, deseq2, replicate_dataset, replicate_counts):
        model = deseq2.deseq_dataset(replicate_dataset)
        collapsed = deseq2.collapse_replicates(model, group_by="subject", run="run")

        assert collapsed.sample_names == ["lib1", "lib2", "lib3", "lib4"]
        assert collapsed.config.collapsed_by == "subject"
        assert list(collapsed.column_data["condition"]) == ["A", "A", "B", "B"]
        assert list(collapsed.column_data["runsCollapsed"]) == ["run1,run2"] * 4

        raw = _raw_counts(collapsed)
        expected = replicate_counts.T.groupby(lambda c: c.split("_")[0]).sum().T
        np.testing.assert_array_equal(raw[expected.columns].to_numpy(), expected.to_numpy())
        # the input model is untouched
        assert len(model.sample_names) == 8

    def test_sums_runs_without_run_column(self, deseq2, replicate_dataset, replicate_counts):
        model = deseq2.deseq_dataset(replicate_dataset)
        collapsed = deseq2.collapse_replicates(model, group_by="subject")

        assert collapsed.sample_names == ["lib1", "lib2", "lib3", "lib4"]
        assert "runsCollapsed" not in collapsed.column_data.columns
        raw = _raw_counts(collapsed)
        expected = replicate_counts.T.groupby(lambda c: c.split("_")[0]).sum().T
        np.testing.assert_array_equal(raw[expected.columns].to_numpy(), expected.to_numpy())

    def test_no_replicates_is_noop(self, deseq2, mock_counts):
        meta = build_sample_metadata(
            mock_counts.columns,
            ["control"] * 3 + ["treated"] * 3,
            [f"donor{i}" for i in range(6)],
        )
        model = deseq2.deseq_dataset(CountDataset.from_frames(mock_counts, meta))
        collapsed = deseq2.collapse_replicates(model, group_by="subject")
        assert collapsed.sample_names == model.sample_names
        assert collapsed.dds is model.dds
        assert collapsed.config.collapsed_by == "subject"

    def test_mixed_condition_group(self, deseq2, model):
        with pytest.raises(ValueError, match="more than one condition"):
            deseq2.collapse_replicates(model, group_by="subject")

    def test_unknown_group_column(self, deseq2, model):
        with pytest.raises(KeyError):
            deseq2.collapse_replicates(model, group_by="library")

    def test_after_fit(self, deseq2, fitted):
        with pytest.raises(ValueError, match="already fitted"):
            deseq2.collapse_replicates(fitted, group_by="subject")


class TestDeseqAndResults:

    def test_fit(self, fitted, model):
        assert fitted.fitted
        assert fitted.config.test == "Wald"
        assert not model.fitted

    def test_results_columns(self, deseq2, fitted, mock_counts):
        res = deseq2.results(fitted)
        assert list(res.columns) == RESULT_COLUMNS
        assert list(res["gene"]) == list(mock_counts.index)
        assert res.attrs["comparison"] == "condition: treated vs control"
        check_results_integrity(res)

    def test_detects_planted_effect(self, deseq2, fitted):
        res = deseq2.results(fitted).set_index("gene")
        de = res.iloc[:20]
        assert de["log2_fold_change"].median() > 1
        assert (de["adj_p_value"] < 0.05).sum() >= 10

    def test_reversed_contrast(self, deseq2, fitted):
        fwd = deseq2.results(fitted)
        rev = deseq2.results(fitted, contrast=("condition", "control", "treated"))
        np.testing.assert_allclose(
            fwd["log2_fold_change"], -rev["log2_fold_change"], rtol=1e-8, equal_nan=True
        )

    def test_results_by_name(self, deseq2, fitted):
        res = deseq2.results(fitted, name="condition_treated_vs_control")
        assert list(res.columns) == RESULT_COLUMNS

    def test_unfitted(self, deseq2, model):
        with pytest.raises(ValueError, match="not been fitted"):
            deseq2.results(model)

    @pytest.mark.parametrize("contrast", [
        ("condition", "treated"),
        ("condition", "treated", "placebo"),
        ("condition", "treated", "treated"),
    ])
    def test_invalid_contrast(self, deseq2, fitted, contrast):
        with pytest.raises(ValueError):
            deseq2.results(fitted, contrast=contrast)

    def test_lrt_requires_reduced(self, deseq2, model):
        with pytest.raises(ValueError, match="reduced"):
            deseq2.deseq(model, test="LRT")

    def test_lrt(self, deseq2, model):
        fitted = deseq2.deseq(model, test="LRT", reduced="~ 1")
        res = deseq2.results(fitted)
        check_results_integrity(res)

    def test_lfc_shrink(self, deseq2, fitted):
        shrunk = deseq2.lfc_shrink(fitted)
        raw = deseq2.results(fitted)
        assert "log2_fold_change" in shrunk.columns
        assert list(shrunk["gene"]) == list(raw["gene"])
        assert shrunk["log2_fold_change"].abs().sum() <= raw["log2_fold_change"].abs().sum()


class TestTransform:

    def test_vst(self, deseq2, model, mock_counts):
        vsd = deseq2.vst(model)
        assert vsd.values.shape == mock_counts.shape
        assert vsd.blind

    def test_pca_data(self, deseq2, fitted):
        pca, percent_var = deseq2.pca_data(fitted)
        assert {"PC1", "PC2", "condition", "name"} <= set(pca.columns)
        assert len(pca) == 6
        assert len(percent_var) == 2
        assert 0 < percent_var.sum() <= 1

    def test_pca_rejects_other_input(self, deseq2):
        with pytest.raises(TypeError):
            deseq2.pca_data(pd.DataFrame())


class TestAccessor:

    def test_run(self, deseq2, mock_dataset):
        model = mock_dataset.deseq2.run()
        assert model.fitted
        res = model.results()
        assert list(res.columns) == RESULT_COLUMNS

    def test_run_with_collapse(self, deseq2, replicate_dataset):
        model = replicate_dataset.deseq2.run(collapse_by="subject", run="run")
        assert model.sample_names == ["lib1", "lib2", "lib3", "lib4"]
        assert model.fitted

    def test_run_with_collapse_no_run(self, deseq2, replicate_dataset):
        model = replicate_dataset.deseq2.run(collapse_by="subject")
        assert model.sample_names == ["lib1", "lib2", "lib3", "lib4"]
        assert model.fitted


class TestRDependencies:

    def test_is_installed(self, deseq2):
        from differential_counts import is_r_package_installed
        assert is_r_package_installed("DESeq2")
        assert not is_r_package_installed("notAnInstalledPackage123")

    def test_ensure_is_idempotent(self, deseq2):
        from differential_counts import ensure_r_dependencies
        ensure_r_dependencies(["DESeq2", "SummarizedExperiment"])
        ensure_r_dependencies(["DESeq2"])

    def test_environment_is_singleton(self, deseq2):
        from differential_counts.r_env import get_r_environment
        r = get_r_environment()
        assert r is get_r_environment()
        assert r.lazy_import_r_packages("DESeq2") is r.lazy_import_r_packages("DESeq2")
