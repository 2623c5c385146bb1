"""Pipeline config schema (pipeline.v1).

Tests:
    - Shipped default config loads and matches model defaults
    - Range checks with actionable messages
    - Unknown keys rejected
    - CLI overrides re-validated
"""

from pathlib import Path

import pytest
import yaml

from pathgpu.utils import validators


@pytest.fixture(scope="module")
def project_root():
    return Path(__file__).parent.parent


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


def test_shipped_config_loads(project_root):
    cfg = validators.load_pipeline_config(project_root / "configs/pipeline_v1.yaml")
    assert cfg.flatten.tolerance == pytest.approx(0.1)
    assert cfg.flatten.method == "subdivision"
    assert cfg.viewport.num_tiles == (1024, 32)
    assert cfg == validators.PipelineV1()


def test_defaults():
    cfg = validators.PipelineV1()
    assert cfg.schema_version == "pipeline.v1"
    assert cfg.loader.include_hidden is False
    assert cfg.output.name is None
    assert cfg.flatten.flattener_kwargs() == {"max_depth": 16}


def test_uniform_kwargs():
    cfg = validators.FlattenConfig(method="uniform", max_segments=64)
    assert cfg.flattener_kwargs() == {"max_segments": 64}


@pytest.mark.parametrize("tolerance", [0, -0.5, float("inf")])
def test_tolerance_rejected(tolerance):
    with pytest.raises(ValueError):
        validators.FlattenConfig(tolerance=tolerance)


def test_unknown_method_rejected():
    with pytest.raises(ValueError):
        validators.FlattenConfig(method="adaptive")


def test_wrong_schema(tmp_path):
    path = write_yaml(tmp_path / "p.yaml", {"schema": "pipeline.v0"})
    with pytest.raises(ValueError, match="pipeline.v1"):
        validators.load_pipeline_config(path)


def test_unknown_key(tmp_path):
    path = write_yaml(tmp_path / "p.yaml", {"schema": "pipeline.v1", "flattening": {}})
    with pytest.raises(ValueError, match="validation failed"):
        validators.load_pipeline_config(path)


def test_non_mapping(tmp_path):
    path = tmp_path / "p.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError, match="mapping"):
        validators.load_pipeline_config(path)


def test_broken_yaml(tmp_path):
    path = tmp_path / "p.yaml"
    path.write_text("flatten: {tolerance: [0.1\n")
    with pytest.raises(ValueError, match="not valid YAML"):
        validators.load_pipeline_config(path)


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "p.yaml"
    path.write_text("")
    assert validators.load_pipeline_config(path) == validators.PipelineV1()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        validators.load_pipeline_config(tmp_path / "missing.yaml")


def test_viewport_checks():
    with pytest.raises(ValueError, match="num_tiles"):
        validators.ViewportConfig(num_tiles=(0, 4))
    with pytest.raises(ValueError, match="extent"):
        validators.ViewportConfig(extent=(100.0, -1.0))


def test_output_name_must_be_prefix():
    with pytest.raises(ValueError, match="prefix"):
        validators.OutputConfig(name="a/b")


def test_uniform_cap():
    with pytest.raises(ValueError, match="max_segments"):
        validators.PipelineV1(flatten={"method": "uniform", "max_segments": 1})


def test_with_overrides():
    base = validators.PipelineV1()
    cfg = base.with_overrides(tolerance=0.5, method="uniform", output_dir="out",
                              name="x", log_level="debug", json_logs=True)
    assert cfg.flatten.tolerance == 0.5
    assert cfg.flatten.method == "uniform"
    assert cfg.output.directory == "out"
    assert cfg.output.name == "x"
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.json_format is True
    assert base.flatten.tolerance == pytest.approx(0.1)


def test_overrides_revalidated():
    with pytest.raises(ValueError):
        validators.PipelineV1().with_overrides(tolerance=-1.0)


def test_logging_setup_kwargs():
    cfg = validators.LoggingConfig(json=True, level="WARNING")
    assert cfg.setup_kwargs() == {"level": "WARNING", "file": None, "json": True, "color": True}
