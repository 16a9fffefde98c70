from __future__ import annotations

import json
import os
from pathlib import Path

import numpy as np

from bagdata.datasets import BaggedDataset
from bagdata.tools.bags_cli import main


def test_random_then_info(tmp_path: Path, capsys):
    out = tmp_path / "toy.bags"

    code = main(
        ["random", str(out), "--bags", "3", "--bag-size", "2", "--dimension", "4", "--seed", "7"]
    )
    assert code == 0
    assert out.exists()
    assert BaggedDataset.load(out) == BaggedDataset.random(3, 2, 4, seed=7)
    capsys.readouterr()

    code = main(["info", str(out)])
    assert code == 0
    info = json.loads(capsys.readouterr().out)
    assert info["summary"]["n_instances"] == 6
    assert info["summary"]["n_bags"] == 3
    assert info["dataset_kind"] == "binary"


def test_info_with_build_info(small_bags_path: Path, capsys):
    code = main(["info", str(small_bags_path), "--kind", "text", "--build-info"])

    assert code == 0
    info = json.loads(capsys.readouterr().out)
    assert info["summary"]["n_features"] == 4
    assert info["build"]["native"]["float_bytes"] == 8


def test_bare_file_name_goes_to_data_dir(tmp_path: Path):
    code = main(["random", "bare.bags", "--bags", "1", "--bag-size", "1", "--dimension", "1"])

    assert code == 0
    assert (Path(os.environ["BAGDATA_DATA_DIR"]) / "bare.bags").exists()


def test_convert_text_to_binary_and_back(small_bags_path: Path, tmp_path: Path):
    binary = tmp_path / "small.bags.bin"
    text = tmp_path / "small.csv"

    assert main(["convert", str(small_bags_path), str(binary), "--src-kind", "text"]) == 0
    assert main(["convert", str(binary), str(text)]) == 0

    original = BaggedDataset.load_text(small_bags_path)
    assert BaggedDataset.load(binary) == original
    assert BaggedDataset.load_text(text, header=True) == original


def test_join(tmp_path: Path):
    a = BaggedDataset.random(2, 2, 3, seed=1)
    b = BaggedDataset.random(1, 3, 3, seed=2)
    a.save(tmp_path / "a.bags")
    b.save(tmp_path / "b.bags")

    out = tmp_path / "ab.bags"
    assert main(["join", str(tmp_path / "a.bags"), str(tmp_path / "b.bags"), str(out)]) == 0

    ab = BaggedDataset.load(out)
    assert ab.number_of_bags() == 3
    assert np.array_equal(ab.instances[4:], b.instances)


def test_error_exit_codes(tmp_path: Path, capsys):
    assert main(["info", str(tmp_path / "missing.bags")]) == 2

    bad = tmp_path / "bad.bags"
    bad.write_bytes(b"not a header\n")
    assert main(["info", str(bad)]) == 3

    a = BaggedDataset.random(1, 1, 2, seed=0)
    b = BaggedDataset.random(1, 1, 3, seed=0)
    a.save(tmp_path / "a.bags")
    b.save(tmp_path / "b.bags")
    out = str(tmp_path / "ab.bags")
    assert main(["join", str(tmp_path / "a.bags"), str(tmp_path / "b.bags"), out]) == 3

    err = capsys.readouterr().err
    assert "[ERR]" in err
    assert "ShapeMismatch" in err
