import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "scripts"))

from convert_coco_to_yolo import convert  # noqa: E402

from cocodet.errors import UnsupportedSplitError
from cocodet.prepare import main, parse_args


def test_prepare_cli(tmp_path, write_document, two_image_doc, capsys):
    write_document(two_image_doc)
    ds = main(parse_args(["--data-dir", str(tmp_path), "--log-level", "warning"]))
    assert ds.size() == 1
    out = capsys.readouterr().out
    assert "split=train size=1 classes=1" in out
    assert "000000000001.jpg boxes=1" in out


def test_prepare_cli_validation_split(tmp_path, write_document, two_image_doc):
    write_document(two_image_doc)
    with pytest.raises(UnsupportedSplitError):
        main(parse_args(["--data-dir", str(tmp_path), "--split", "validation"]))


def test_convert_to_yolo(tmp_path, write_document, make_document):
    doc = make_document(
        images=[1, 2],
        annotations=[(1, 1, 90, (16.0, 12.0, 32.0, 24.0), 768.0), (2, 2, 90, (0, 0, 0, 0), 0.0)],
        categories=[1, 90],
    )
    ann = write_document(doc)
    out = tmp_path / "labels"
    assert convert(ann, out) == 1
    assert (out / "000000000001.txt").read_text() == "1 0.500000 0.500000 0.500000 0.500000"
    assert not (out / "000000000002.txt").exists()
    assert (out / "classes.txt").read_text() == "cat1\ncat90"
