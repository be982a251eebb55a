"""Test atomic filesystem operations.

Tests for epicycle_tracer.utils.fs:
    - Atomic writes leave no temp files behind
    - YAML roundtrip preserves key order
    - Image save for bool masks, grayscale and RGB arrays
    - ensure_dir creates parents

Run:
    pytest tests/test_fs.py -v
"""

import numpy as np
import pytest
from PIL import Image

from epicycle_tracer.utils import fs


def test_ensure_dir(tmp_path):
    p = fs.ensure_dir(tmp_path / "a" / "b" / "c")
    assert p.is_dir()
    assert fs.ensure_dir(p) == p


def test_atomic_write_bytes(tmp_path):
    path = tmp_path / "sub" / "data.bin"
    fs.atomic_write_bytes(path, b"\x00\x01\x02")
    assert path.read_bytes() == b"\x00\x01\x02"
    assert list(path.parent.iterdir()) == [path]


def test_atomic_write_overwrites(tmp_path):
    path = tmp_path / "note.txt"
    fs.atomic_write_bytes(path, b"first")
    fs.atomic_write_bytes(path, b"second")
    assert path.read_bytes() == b"second"


def test_atomic_write_failure_raises(tmp_path):
    target = tmp_path / "is_a_dir"
    target.mkdir()
    with pytest.raises(RuntimeError, match="atomically"):
        fs.atomic_write_bytes(target, b"x")
    assert not (tmp_path / "is_a_dir.tmp").exists()


def test_yaml_roundtrip_keeps_order(tmp_path):
    obj = {'schema': 'epicycles.v1', 'b': [1, 2], 'a': {'z': 1.5, 'y': None}}
    path = tmp_path / "obj.yaml"
    fs.atomic_yaml_dump(obj, path)

    loaded = fs.load_yaml(path)
    assert loaded == obj
    assert list(loaded) == ['schema', 'b', 'a']


def test_load_yaml_empty(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert fs.load_yaml(path) == {}


def test_load_yaml_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        fs.load_yaml(tmp_path / "missing.yaml")


def test_save_bool_mask(tmp_path):
    mask = np.zeros((4, 5), dtype=bool)
    mask[1, 2] = True
    path = tmp_path / "mask.png"
    fs.atomic_save_image(mask, path)

    with Image.open(path) as img:
        arr = np.array(img)
    assert arr.shape == (4, 5)
    assert arr[1, 2] == 255
    assert arr.sum() == 255


def test_save_rgb(tmp_path):
    img = np.zeros((3, 4, 3), dtype=np.uint8)
    img[..., 1] = 200
    path = tmp_path / "rgb.png"
    fs.atomic_save_image(img, path)

    with Image.open(path) as loaded:
        assert loaded.mode == "RGB"
        np.testing.assert_array_equal(np.array(loaded), img)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["rgb.png"]


def test_save_rejects_bad_shape(tmp_path):
    with pytest.raises(ValueError, match="image"):
        fs.atomic_save_image(np.zeros((3, 4, 4), dtype=np.uint8), tmp_path / "x.png")
