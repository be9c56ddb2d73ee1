"""Prepare a COCO split and print a summary of the resulting dataset."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .data import CategoryOrder, CocoDetection, DatasetConfig, Split


def build_config(args: argparse.Namespace) -> DatasetConfig:
    return DatasetConfig(
        split=Split(args.split),
        cache_dir=args.cache_dir,
        data_dir=args.data_dir,
        category_order=CategoryOrder(args.category_order),
        include_crowd=not args.no_crowd,
        download_images=args.download_images,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Index a COCO style detection split")
    parser.add_argument("--split", type=str, default="train", choices=[s.value for s in Split])
    parser.add_argument("--data-dir", type=Path, default=None, help="Local dataset root, skips downloading")
    parser.add_argument("--cache-dir", type=Path, default=None, help="Download cache (default $COCODET_CACHE_DIR)")
    parser.add_argument(
        "--category-order",
        type=str,
        default=CategoryOrder.SORTED.value,
        choices=[o.value for o in CategoryOrder],
        help="How raw category ids map to label indices",
    )
    parser.add_argument("--no-crowd", action="store_true", help="Drop iscrowd annotations")
    parser.add_argument("--download-images", action="store_true", help="Also fetch the split image archive")
    parser.add_argument("--show", type=int, default=3, help="Number of entries to print")
    parser.add_argument("--log-level", type=str, default="INFO")
    return parser.parse_args(argv)


def main(args: argparse.Namespace | None = None) -> CocoDetection:
    args = parse_args() if args is None else args
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    dataset = CocoDetection(build_config(args))
    dataset.prepare()
    print(f"split={dataset.split.value} size={dataset.size()} classes={dataset.num_classes}")
    for i in range(min(args.show, dataset.size())):
        reference, labels = dataset.get(i)
        print(f"[{i}] {reference} boxes={len(labels)}")
    return dataset


if __name__ == "__main__":
    main()
