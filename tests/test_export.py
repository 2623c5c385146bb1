"""Buffer export and reload.

Tests:
    - File set, sizes and manifest contents
    - Reload returns identical GpuData
    - Tampered buffers / wrong layout version rejected
    - Locals block size check
"""

import pytest
import yaml

from pathgpu.layout.assembler import GpuData, generate_gpu_data
from pathgpu.layout.export import export_gpu_data, load_exported
from pathgpu.layout.records import LAYOUT_VERSION, pack_locals
from pathgpu.utils import hashing


@pytest.fixture
def gpu(square, curve):
    return generate_gpu_data([square, curve], 0.1)


def test_writes_buffers_and_manifest(gpu, tmp_path):
    result = export_gpu_data(gpu, tmp_path / "out", "doc")

    assert result.manifest == tmp_path / "out" / "doc_manifest.yaml"
    assert sorted(result.files) == ["data", "objects", "primitives"]
    assert result.files["objects"].read_bytes() == gpu.objects_bytes()
    assert result.files["data"].stat().st_size == 4 * gpu.num_data_words
    assert result.digest == gpu.digest()
    assert not list((tmp_path / "out").glob("*.tmp"))


def test_manifest_contents(gpu, tmp_path):
    result = export_gpu_data(gpu, tmp_path, "doc", metadata={"source": "doc.svg"})
    manifest = yaml.safe_load(result.manifest.read_text())

    assert manifest["layout"]["version"] == LAYOUT_VERSION
    assert manifest["layout"]["object"]["stride"] == 28
    assert manifest["counts"] == {
        "objects": gpu.num_objects,
        "primitives": gpu.num_primitives,
        "data_words": gpu.num_data_words,
    }
    entry = manifest["files"]["primitives"]
    assert entry["file"] == "doc_primitives.bin"
    assert entry["bytes"] == 4 * gpu.num_primitives
    assert entry["sha256"] == hashing.sha256_file(tmp_path / "doc_primitives.bin")
    assert manifest["metadata"] == {"source": "doc.svg"}


def test_roundtrip(gpu, tmp_path):
    result = export_gpu_data(gpu, tmp_path, "doc")
    assert load_exported(result.manifest) == gpu


def test_empty_roundtrip(tmp_path):
    result = export_gpu_data(GpuData.empty(), tmp_path, "empty")
    assert load_exported(result.manifest).counts() == (0, 0, 0)


def test_locals_block_written(gpu, tmp_path):
    block = pack_locals((16, 16), (0.0, 0.0), (100.0, 100.0), gpu.num_objects)
    result = export_gpu_data(gpu, tmp_path, "doc", locals_block=block)
    assert result.files["locals"].read_bytes() == block


def test_locals_block_wrong_size(gpu, tmp_path):
    with pytest.raises(ValueError, match="28 bytes"):
        export_gpu_data(gpu, tmp_path, "doc", locals_block=b"\x00" * 8)


@pytest.mark.parametrize("name", ["", "a/b", ".."])
def test_bad_name(gpu, tmp_path, name):
    with pytest.raises(ValueError, match="plain file prefix"):
        export_gpu_data(gpu, tmp_path, name)


def test_tampered_buffer_rejected(gpu, tmp_path):
    result = export_gpu_data(gpu, tmp_path, "doc")
    data = bytearray(result.files["data"].read_bytes())
    data[0] ^= 0xFF
    result.files["data"].write_bytes(bytes(data))
    with pytest.raises(ValueError, match="SHA-256 mismatch"):
        load_exported(result.manifest)


def test_truncated_buffer_rejected(gpu, tmp_path):
    result = export_gpu_data(gpu, tmp_path, "doc")
    result.files["objects"].write_bytes(gpu.objects_bytes()[:-4])
    with pytest.raises(ValueError, match="expected"):
        load_exported(result.manifest)


def test_layout_version_mismatch(gpu, tmp_path):
    result = export_gpu_data(gpu, tmp_path, "doc")
    manifest = yaml.safe_load(result.manifest.read_text())
    manifest["layout"]["version"] = LAYOUT_VERSION + 1
    result.manifest.write_text(yaml.safe_dump(manifest))
    with pytest.raises(ValueError, match="Layout version mismatch"):
        load_exported(result.manifest)


def test_missing_manifest(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_exported(tmp_path / "nope_manifest.yaml")
