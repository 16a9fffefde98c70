"""Command-line tool for bagged dataset files.

Usage:
  python -m bagdata.tools.bags_cli info data/train.bags
  python -m bagdata.tools.bags_cli info data/train.csv --header
  python -m bagdata.tools.bags_cli random toy.bags --bags 10 --bag-size 5 --dimension 3
  python -m bagdata.tools.bags_cli convert data/train.csv data/train.bags --header
  python -m bagdata.tools.bags_cli join a.bags b.bags ab.bags
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from bagdata.common.config import get_settings
from bagdata.common.version import get_build_info
from bagdata.datasets import (
    BaggedDataset,
    BaggedDatasetError,
    DatasetSpec,
    describe,
    guess_kind,
    join,
    load_dataset,
    save_dataset,
)


def _out_path(path: str, data_dir: str) -> Path:
    # 디렉터리 없이 파일명만 주면 BAGDATA_DATA_DIR 아래에 쓴다
    p = Path(path)
    if p.parent == Path("."):
        return Path(data_dir) / p
    return p


def _spec(path: str | Path, kind: str | None, header: bool = False) -> DatasetSpec:
    k = kind or guess_kind(path)
    params: dict[str, object] = {"path": str(path)}
    if k == "text":
        params["header"] = header
    return DatasetSpec(kind=k, name=Path(path).stem, params=params)


def _cmd_info(args: argparse.Namespace) -> int:
    spec = _spec(args.path, args.kind, args.header)
    ds = load_dataset(spec)
    meta = describe(spec, ds)
    if args.build_info:
        meta["build"] = get_build_info()
    print(json.dumps(meta, ensure_ascii=False, indent=2))
    return 0


def _cmd_random(args: argparse.Namespace) -> int:
    s = get_settings()
    ds = BaggedDataset.random(
        args.bags,
        args.bag_size,
        args.dimension,
        bag_label_dim=args.bag_label_dim,
        instance_label_dim=args.instance_label_dim,
        seed=args.seed,
    )
    dst = save_dataset(ds, _spec(_out_path(args.out, s.data_dir), args.kind))
    print(f"[OK] random dataset -> {dst} {ds.summary()}")
    return 0


def _cmd_convert(args: argparse.Namespace) -> int:
    s = get_settings()
    ds = load_dataset(_spec(args.src, args.src_kind, args.header))
    dst = save_dataset(ds, _spec(_out_path(args.dst, s.data_dir), args.dst_kind))
    print(f"[OK] converted {args.src} -> {dst}")
    return 0


def _cmd_join(args: argparse.Namespace) -> int:
    s = get_settings()
    a = load_dataset(_spec(args.a, args.kind, args.header))
    b = load_dataset(_spec(args.b, args.kind, args.header))
    ds = join(a, b)
    dst = save_dataset(ds, _spec(_out_path(args.out, s.data_dir), args.out_kind))
    print(f"[OK] joined {args.a} + {args.b} -> {dst} {ds.summary()}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Inspect, generate, convert and join bag files.")
    sub = ap.add_subparsers(dest="command", required=True)

    kinds = ["binary", "text"]

    p = sub.add_parser("info", help="print counts and fingerprint as JSON")
    p.add_argument("path")
    p.add_argument("--kind", choices=kinds, default=None, help="default: guess from suffix")
    p.add_argument("--header", action="store_true", help="text input has a header row")
    p.add_argument("--build-info", action="store_true", help="include host/format info")
    p.set_defaults(func=_cmd_info)

    p = sub.add_parser("random", help="write a random synthetic dataset")
    p.add_argument("out")
    p.add_argument("--bags", type=int, required=True)
    p.add_argument("--bag-size", type=int, required=True)
    p.add_argument("--dimension", type=int, required=True)
    p.add_argument("--bag-label-dim", type=int, default=1)
    p.add_argument("--instance-label-dim", type=int, default=1)
    p.add_argument("--seed", type=int, default=None, help="default: BAGDATA_SEED")
    p.add_argument("--kind", choices=kinds, default=None)
    p.set_defaults(func=_cmd_random)

    p = sub.add_parser("convert", help="convert between binary and text formats")
    p.add_argument("src")
    p.add_argument("dst")
    p.add_argument("--src-kind", choices=kinds, default=None)
    p.add_argument("--dst-kind", choices=kinds, default=None)
    p.add_argument("--header", action="store_true", help="text input has a header row")
    p.set_defaults(func=_cmd_convert)

    p = sub.add_parser("join", help="append dataset B after dataset A")
    p.add_argument("a")
    p.add_argument("b")
    p.add_argument("out")
    p.add_argument("--kind", choices=kinds, default=None, help="kind of both inputs")
    p.add_argument("--out-kind", choices=kinds, default=None)
    p.add_argument("--header", action="store_true", help="text inputs have a header row")
    p.set_defaults(func=_cmd_join)

    return ap


def main(argv: list[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    try:
        s = get_settings()
        logging.basicConfig(level=getattr(logging, s.log_level, logging.WARNING))
        return int(args.func(args))
    except FileNotFoundError as e:
        print(f"[ERR] file not found: {e}", file=sys.stderr)
        return 2
    except BaggedDatasetError as e:
        print(f"[ERR] {type(e).__name__}: {e}", file=sys.stderr)
        return 3
    except ValueError as e:
        print(f"[ERR] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
