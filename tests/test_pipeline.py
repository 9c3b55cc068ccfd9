import json

import pandas as pd

from endorse.config import CatalogPaths, PipelineConfig
from endorse.pipeline import _parse_args, main, run_pipeline
from tests import ORIGIN, support


def test_run_pipeline_writes_artifacts(tmp_path, local_catalog, local_causes):
    config = PipelineConfig(paths=CatalogPaths(output_dir=tmp_path / "out"), max_range_miles=10)
    outputs = run_pipeline(config, "u1", origin=ORIGIN, catalog=local_catalog, user_causes=local_causes)

    brands = pd.read_csv(outputs["brand_scores"])
    assert len(brands) == len(local_catalog.brands)
    assert dict(zip(brands["brand_id"], brands["alignment_score"])) == {
        "b-acme": 75,
        "b-birch": 99,
        "b-cobalt": 26,
        "b-dune": 50,
        "b-ember": 1,
    }

    businesses = pd.read_csv(outputs["business_scores"])
    assert list(businesses["business_id"]) == ["agree", "neutral", "conflict"]
    assert list(businesses["band"]) == ["aligned", "neutral", "unaligned"]

    metadata = json.loads(outputs["metadata"].read_text())
    assert metadata["user_id"] == "u1"
    assert metadata["n_causes"] == 3
    assert metadata["n_businesses_in_range"] == 3
    assert metadata["origin"] == list(ORIGIN)


def test_run_pipeline_without_origin(tmp_path, catalog):
    config = PipelineConfig(paths=CatalogPaths(output_dir=tmp_path))
    outputs = run_pipeline(config, "u1", catalog=catalog, user_causes=[support("v1")])
    metadata = json.loads(outputs["metadata"].read_text())
    assert metadata["n_aligned_brands"] == 5
    assert metadata["n_businesses_in_range"] == 0
    assert metadata["origin"] is None


def test_parse_args_defaults():
    args = _parse_args(["--user-id", "u1"])
    assert args.data_dir == "data/catalog"
    assert args.range_miles is None
    assert args.sort == "highToLow"
    assert args.workers == 0


def test_main_reads_csv_catalog(tmp_path, capsys):
    data = tmp_path / "catalog"
    data.mkdir()
    (data / "brands.csv").write_text("id,name\nb1,Acme\nb2,Birch\n")
    (data / "value_matrix.csv").write_text("value_id,stance,rank,brand_name\nv1,support,1,Acme\n")
    (data / "user_causes.csv").write_text("user_id,value_id,stance\nu1,v1,support\n")
    out = tmp_path / "out"

    main(["--data-dir", str(data), "--output-dir", str(out), "--user-id", "u1", "--workers", "2"])

    assert "[endorse] Ranking artifacts saved to:" in capsys.readouterr().out
    brands = pd.read_csv(out / "brand_scores.csv")
    assert dict(zip(brands["brand_id"], brands["alignment_score"])) == {"b1": 99, "b2": 1}
    assert (out / "metadata.json").exists()
