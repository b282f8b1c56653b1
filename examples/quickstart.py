# examples/quickstart.py
import logging

import numpy as np
import pandas as pd

import differential_counts as dc

dc.setup_logger("differential_counts", level=logging.INFO)

# --- make a toy counts matrix (genes x runs); 4 libraries sequenced twice ---
genes = [f"gene{i+1}" for i in range(500)]
runs = [f"lib{i // 2 + 1}_run{i % 2 + 1}" for i in range(16)]
rng = np.random.default_rng(1)
counts = rng.negative_binomial(n=10, p=0.3, size=(len(genes), len(runs)))
counts[:50, 8:] *= 4  # first 50 genes up in "treated"
counts = pd.DataFrame(counts, index=genes, columns=runs)

# sample meta: condition, library (the biological sample) and run
meta = dc.build_sample_metadata(
    samples=runs,
    conditions=["control"] * 8 + ["treated"] * 8,
    subjects=[r.split("_")[0] for r in runs],
    runs=[r.split("_")[1] for r in runs],
    reference="control",
)
ds = dc.CountDataset.from_frames(counts, meta).filter_low_counts(10)

# DESeq2 is only touched from here on
import differential_counts.deseq2 as deseq2

model = ds.deseq2.run(collapse_by="subject", run="run")
res = dc.sort_by_adjusted_pvalue(model.results(alpha=0.05))
sig = dc.filter_significant(res, threshold=0.05)
print(dc.summarize_results(res).to_dict())
print(sig.head())

# shrunken fold changes and a PCA of the collapsed libraries
shrunk = deseq2.lfc_shrink(model)
pca, percent_var = deseq2.pca_data(model)
dc.pca_plot(pca, percent_var, label_col="name", save_path="pca.png")
dc.volcano_plot(res, title=res.attrs["comparison"], save_path="volcano.png")
dc.write_results(res, "results.csv")
