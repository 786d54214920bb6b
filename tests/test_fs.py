"""Test atomic filesystem operations.

Tests for fractal_flame.utils.fs:
    - ensure_dir creates parents
    - Atomic byte / image / YAML writes leave no temporary files behind
    - YAML roundtrip preserves structure and key order
    - Float images are converted to uint8 on save

Run:
    pytest tests/test_fs.py -v
"""

import numpy as np
import pytest
import yaml
from PIL import Image

from fractal_flame.utils import fs


def test_ensure_dir(tmp_path):
    target = tmp_path / "a" / "b" / "c"
    result = fs.ensure_dir(target)
    assert result == target
    assert target.is_dir()
    # Idempotent
    fs.ensure_dir(target)


def test_atomic_write_bytes(tmp_path):
    path = tmp_path / "sub" / "data.bin"
    fs.atomic_write_bytes(path, b"flame")
    assert path.read_bytes() == b"flame"
    fs.atomic_write_bytes(path, b"overwritten")
    assert path.read_bytes() == b"overwritten"
    assert list(path.parent.iterdir()) == [path]


def test_atomic_save_image_rgba(tmp_path):
    rgba = np.zeros((6, 5, 4), dtype=np.uint8)
    rgba[2, 3] = (10, 20, 30, 255)
    path = tmp_path / "img.png"
    fs.atomic_save_image(rgba, path)

    with Image.open(path) as img:
        assert img.mode == "RGBA"
        assert img.size == (5, 6)
        np.testing.assert_array_equal(np.asarray(img), rgba)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["img.png"]


def test_atomic_save_image_float(tmp_path):
    img = np.full((4, 4, 3), 0.5, dtype=np.float32)
    img[0, 0] = (2.0, -1.0, 1.0)
    path = tmp_path / "float.png"
    fs.atomic_save_image(img, path)

    with Image.open(path) as loaded:
        data = np.asarray(loaded)
    assert tuple(data[0, 0]) == (255, 0, 255)
    assert tuple(data[1, 1]) == (128, 128, 128)


def test_atomic_save_image_bad_extension(tmp_path):
    with pytest.raises(RuntimeError, match="atomically"):
        fs.atomic_save_image(np.zeros((2, 2, 4), dtype=np.uint8), tmp_path / "img.notaformat")
    assert list(tmp_path.iterdir()) == []


def test_yaml_roundtrip(tmp_path):
    data = {'seed': 7, 'params': {'gamma': 2.2, 'xforms': [{'coefs': [0.5, 0, 0, 0, 0.5, 0]}]}, 'a': None}
    path = tmp_path / "meta.yaml"
    fs.atomic_yaml_dump(data, path)
    assert fs.load_yaml(path) == data
    # Key order preserved
    assert list(yaml.safe_load(path.read_text())) == ['seed', 'params', 'a']


def test_load_yaml_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        fs.load_yaml(tmp_path / "missing.yaml")


def test_load_yaml_invalid(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("a: [1, 2\n")
    with pytest.raises(yaml.YAMLError):
        fs.load_yaml(path)
