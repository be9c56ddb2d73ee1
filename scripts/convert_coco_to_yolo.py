from pathlib import Path

from cocodet.data import AnnotationStore, CategoryOrder, LabelExtractor


def convert(ann_path: str | Path, out_dir: str | Path, category_order: str = "sorted") -> int:
    """Write one YOLO label file per annotated image; returns the file count."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    store = AnnotationStore.from_file(ann_path, category_order=CategoryOrder(category_order))
    extractor = LabelExtractor(store)
    written = 0
    for img_id in store.image_ids():
        labels = extractor.extract(img_id)
        if not len(labels):
            continue
        img = store.image(img_id)
        if not img.width or not img.height:
            raise ValueError(f"image {img_id} has no width/height, cannot normalise boxes")
        lines = []
        for x, y, w, h, cls in labels:
            xc = (x + w / 2) / img.width
            yc = (y + h / 2) / img.height
            wn = w / img.width
            hn = h / img.height
            lines.append(f"{int(cls)} {xc:.6f} {yc:.6f} {wn:.6f} {hn:.6f}")
        (out_dir / (Path(img.file_name).stem + ".txt")).write_text("\n".join(lines))
        written += 1
    (out_dir / "classes.txt").write_text("\n".join(store.category_names()))
    return written


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Convert COCO annotations to YOLO format")
    parser.add_argument("ann", type=str, help="Path to COCO annotations JSON")
    parser.add_argument("out", type=str, help="Output directory for YOLO label files")
    parser.add_argument("--category-order", type=str, default="sorted", choices=["sorted", "first_seen"])
    args = parser.parse_args()
    n = convert(args.ann, args.out, args.category_order)
    print(f"wrote {n} label files to {args.out}")
