from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pytest

from bagdata.datasets import BaggedDataset, FormatError, ShapeMismatch, read_text_matrix
from bagdata.datasets.text_io import load_text, save_text


def test_load_text_small(small_bags_path: Path):
    small = BaggedDataset.load_text(small_bags_path)

    assert small.number_of_bags() == 4
    assert small.number_of_instances() == 4
    assert small.dimension() == 4
    for i in range(4):
        for j in range(4):
            assert small.instances[i, j] == 4 * i + j + 1

    # 처음 등장 순서대로 0..3
    assert small.indices.tolist() == [0, 1, 2, 3]
    assert small.instance_labels[:, 0].tolist() == [1.0, 0.0, 1.0, 0.0]
    assert small.bag_labels[:, 0].tolist() == [1.0, 0.0, 1.0, 0.0]


def test_load_save_load_text_small(small_bags_path: Path, tmp_path: Path):
    small = BaggedDataset.load_text(small_bags_path)

    p = tmp_path / "small.saved.bags"
    small.save_text(p)
    small2 = BaggedDataset.load_text(p, header=True)

    assert small2 == small


def test_load_save_load_text_random():
    rng = np.random.default_rng(0)
    ids = rng.integers(0, 50, size=200)
    rows = []
    for b in ids:
        fields = [str(int(b)), repr(float(rng.normal()))]
        fields += [repr(float(v)) for v in rng.normal(size=6)]
        rows.append(",".join(fields))
    first = load_text(io.StringIO("\n".join(rows) + "\n"))

    buf = io.StringIO()
    save_text(first, buf)
    buf.seek(0)
    second = load_text(buf, header=True)

    assert second == first
    assert first.number_of_bags() == len(set(ids.tolist()))


def test_save_text_format():
    bags = BaggedDataset(
        np.array([[1.5, 2.0], [3.0, 4.25]]), [0, 1], [0.5, 1.0], [0.0, 1.0]
    )
    buf = io.StringIO()
    save_text(bags, buf)

    lines = buf.getvalue().splitlines()
    assert lines[0] == "bag,label,V1,V2"
    assert lines[1].split(",")[0] == "0"
    assert [float(v) for v in lines[2].split(",")] == [1.0, 1.0, 3.0, 4.25]


def test_bag_labels_are_mean_of_instance_labels():
    text = "1,1.0,0.5\n1,0.0,0.1\n2,2.0,0.3\n1,2.0,0.7\n"

    bags = load_text(io.StringIO(text))

    assert bags.indices.tolist() == [0, 0, 1, 0]
    assert bags.bag_labels[:, 0].tolist() == [1.0, 2.0]
    assert bags.bag_label_dim == 1
    assert bags.instance_label_dim == 1


def test_bag_ids_mapped_in_first_seen_order():
    text = "9,0,1\n-2,0,2\n9,0,3\n4,0,4\n"

    bags = load_text(io.StringIO(text))

    assert bags.indices.tolist() == [0, 1, 0, 2]
    assert bags.number_of_bags() == 3


def test_header_line_is_skipped_and_blank_lines_ignored():
    text = "bag,label,V1\n\n3,1,0.5\n\n3,0,0.25\n"

    bags = load_text(io.StringIO(text), header=True)

    assert bags.number_of_instances() == 2
    assert bags.number_of_bags() == 1
    assert bags.bag_labels[0, 0] == 0.5


def test_custom_separator():
    bags = load_text(io.StringIO("1;0;1.0;2.0\n2;1;3.0;4.0\n"), sep=";")

    assert bags.dimension() == 2
    assert bags.instances[1].tolist() == [3.0, 4.0]


@pytest.mark.parametrize(
    "text",
    [
        "1,0,1,2\n2,0,1\n",  # short row
        "1,0,1\n2,0,1,2\n",  # long row
        "1,0,abc\n",  # non-numeric
        "1,,2\n",  # empty field
        ",0,2\n",  # empty bag id
        "",  # nothing
        "1\n2\n",  # no label column
        "1.5,0,1\n",  # fractional bag id
    ],
)
def test_malformed_text_raises_format_error(text: str):
    with pytest.raises(FormatError):
        load_text(io.StringIO(text))


def test_header_only_is_format_error():
    with pytest.raises(FormatError):
        load_text(io.StringIO("bag,label,V1\n"), header=True)


def test_read_text_matrix():
    m = read_text_matrix(io.StringIO("1,2,3\n\n4,5,6\n"))

    assert m.shape == (2, 3)
    assert m.tolist() == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]


def test_save_text_requires_single_instance_label():
    bags = BaggedDataset.random(2, 2, 3, instance_label_dim=2, seed=0)

    with pytest.raises(ShapeMismatch):
        save_text(bags, io.StringIO())


def test_trailing_separator_is_ignored():
    bags = load_text(io.StringIO("1,0,1,\n2,1,2,\n"))

    assert bags.dimension() == 1
    assert bags.instances[:, 0].tolist() == [1.0, 2.0]
    assert bags.number_of_bags() == 2


def test_label_only_rows_have_no_features():
    bags = load_text(io.StringIO("1,0,\n1,1,\n"))

    assert bags.dimension() == 0
    assert bags.bag_labels[:, 0].tolist() == [0.5]


def test_large_bag_ids_stay_distinct():
    text = "9007199254740993,0,1\n9007199254740992,1,2\n9007199254740993,1,3\n"

    bags = load_text(io.StringIO(text))

    assert bags.number_of_bags() == 2
    assert bags.indices.tolist() == [0, 1, 0]


def test_integral_float_bag_ids_are_accepted():
    bags = load_text(io.StringIO("2.0,0,1\n2,1,2\n"))

    assert bags.number_of_bags() == 1
