"""
Tests for reading count matrices and sample metadata and writing results.
"""

import numpy as np
import pandas as pd
import pytest

from differential_counts.io import (
    is_url,
    load_count_matrix,
    build_sample_metadata,
    load_sample_metadata,
    write_results,
)


@pytest.fixture
def counts_csv(tmp_path, mock_counts):
    path = tmp_path / "counts.csv"
    mock_counts.to_csv(path)
    return path


class TestIsUrl:

    @pytest.mark.parametrize("source", [
        "http://example.org/c.csv",
        "https://example.org/c.csv",
        "HTTPS://EXAMPLE.ORG/c.csv",
        "ftp://example.org/c.csv",
        "file:///tmp/c.csv",
    ])
    def test_urls(self, source):
        assert is_url(source)

    @pytest.mark.parametrize("source", ["counts.csv", "/data/counts.csv", "data/http.csv"])
    def test_paths(self, source):
        assert not is_url(source)


class TestLoadCountMatrix:

    def test_local_path(self, counts_csv, mock_counts):
        counts = load_count_matrix(counts_csv)

        assert counts.shape == (100, 6)
        assert counts.index.name == "gene"
        assert list(counts.columns) == list(mock_counts.columns)
        assert all(dtype == np.int64 for dtype in counts.dtypes)
        np.testing.assert_array_equal(counts.to_numpy(), mock_counts.to_numpy())

    def test_string_path(self, counts_csv):
        counts = load_count_matrix(str(counts_csv))
        assert counts.shape == (100, 6)

    def test_file_url(self, counts_csv):
        counts = load_count_matrix(counts_csv.as_uri())
        assert counts.shape == (100, 6)
        assert counts.index[0] == "Gene_000"

    def test_tab_separated(self, tmp_path, mock_counts):
        path = tmp_path / "counts.tsv"
        mock_counts.to_csv(path, sep="\t")
        counts = load_count_matrix(path, sep="\t")
        assert counts.shape == (100, 6)

    def test_integral_floats_accepted(self, tmp_path):
        path = tmp_path / "counts.csv"
        path.write_text("gene,s1,s2\ng1,1.0,2.0\ng2,0.0,5.0\n")
        counts = load_count_matrix(path)
        assert counts.loc["g2", "s2"] == 5
        assert counts.dtypes.iloc[0] == np.int64

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_count_matrix(tmp_path / "nope.csv")

    @pytest.mark.parametrize("body, message", [
        ("gene,s1,s2\ng1,1,-2\ng2,0,5\n", "negative"),
        ("gene,s1,s2\ng1,1,2.5\ng2,0,5\n", "non-integer"),
        ("gene,s1,s2\ng1,1,\ng2,0,5\n", "missing"),
        ("gene,s1,s2\ng1,1,abc\ng2,0,5\n", "Non-numeric"),
        ("gene,s1,s2\ng1,1,2\ng1,0,5\n", "Duplicate gene"),
    ])
    def test_invalid_values(self, tmp_path, body, message):
        path = tmp_path / "bad.csv"
        path.write_text(body)
        with pytest.raises(ValueError, match=message):
            load_count_matrix(path)

    def test_header_only(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("gene,s1,s2\n")
        with pytest.raises(ValueError, match="empty"):
            load_count_matrix(path)


class TestBuildSampleMetadata:

    def test_default_levels_are_sorted(self):
        meta = build_sample_metadata(
            ["s1", "s2", "s3", "s4"], ["wt", "ko", "wt", "ko"], ["a", "b", "c", "d"]
        )
        assert list(meta.index) == ["s1", "s2", "s3", "s4"]
        assert meta.index.name == "sample"
        assert list(meta["condition"].cat.categories) == ["ko", "wt"]
        assert list(meta["subject"]) == ["a", "b", "c", "d"]
        assert "run" not in meta.columns

    def test_reference_level_first(self):
        meta = build_sample_metadata(
            ["s1", "s2", "s3", "s4"], ["wt", "ko", "wt", "ko"], [1, 2, 3, 4], reference="wt"
        )
        assert list(meta["condition"].cat.categories) == ["wt", "ko"]
        assert list(meta["subject"]) == ["1", "2", "3", "4"]

    def test_runs(self):
        meta = build_sample_metadata(["s1", "s2"], ["a", "b"], ["p", "q"], runs=["r1", "r2"])
        assert list(meta["run"]) == ["r1", "r2"]

    def test_unknown_reference(self):
        with pytest.raises(ValueError, match="Reference level"):
            build_sample_metadata(["s1", "s2"], ["a", "b"], ["p", "q"], reference="c")

    def test_three_levels_rejected(self):
        with pytest.raises(ValueError, match="exactly two levels"):
            build_sample_metadata(["s1", "s2", "s3"], ["a", "b", "c"], ["p", "q", "r"])

    def test_single_level_rejected(self):
        with pytest.raises(ValueError, match="exactly two levels"):
            build_sample_metadata(["s1", "s2"], ["a", "a"], ["p", "q"])

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="subjects"):
            build_sample_metadata(["s1", "s2"], ["a", "b"], ["p"])

    def test_duplicate_samples(self):
        with pytest.raises(ValueError, match="Duplicate sample"):
            build_sample_metadata(["s1", "s1"], ["a", "b"], ["p", "q"])


class TestLoadSampleMetadata:

    def test_reads_and_normalizes(self, tmp_path):
        path = tmp_path / "samples.csv"
        path.write_text(
            "sample,condition,subject,run\n"
            "s1,ctrl,p1,r1\ns2,ctrl,p2,r1\ns3,trt,p1,r2\ns4,trt,p2,r2\n"
        )
        meta = load_sample_metadata(path, run_col="run", reference="ctrl")

        assert list(meta.index) == ["s1", "s2", "s3", "s4"]
        assert list(meta["condition"].cat.categories) == ["ctrl", "trt"]
        assert list(meta["run"]) == ["r1", "r1", "r2", "r2"]

    def test_custom_column_names(self, tmp_path):
        path = tmp_path / "samples.csv"
        path.write_text("id,group,donor\ns1,x,d1\ns2,y,d1\n")
        meta = load_sample_metadata(path, sample_col="id", condition_col="group", subject_col="donor")
        assert list(meta["condition"]) == ["x", "y"]
        assert list(meta["subject"]) == ["d1", "d1"]

    def test_missing_column(self, tmp_path):
        path = tmp_path / "samples.csv"
        path.write_text("sample,condition\ns1,a\ns2,b\n")
        with pytest.raises(KeyError, match="subject"):
            load_sample_metadata(path)


class TestWriteResults:

    def test_gene_column_first(self, tmp_path, results_frame):
        reordered = results_frame[["p_value", "gene", "adj_p_value"]]
        path = write_results(reordered, tmp_path / "out" / "results.csv")

        assert path.exists()
        back = pd.read_csv(path)
        assert list(back.columns) == ["gene", "p_value", "adj_p_value"]
        assert len(back) == len(results_frame)

    def test_gene_index(self, tmp_path):
        df = pd.DataFrame({"p_value": [0.1, 0.2]}, index=pd.Index(["a", "b"], name="gene"))
        path = write_results(df, tmp_path / "results.csv")
        back = pd.read_csv(path)
        assert list(back["gene"]) == ["a", "b"]

    def test_missing_values_written_empty(self, tmp_path, results_frame):
        path = write_results(results_frame, tmp_path / "results.csv")
        back = pd.read_csv(path)
        assert back["adj_p_value"].isna().sum() == 1
