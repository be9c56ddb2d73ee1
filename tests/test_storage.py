from pathlib import Path

import pytest

from cocodet.data import CocoRepository, LocalStorage, Split
from cocodet.data import storage as storage_mod
from cocodet.errors import UnsupportedSplitError


def test_local_storage_paths(tmp_path):
    storage = LocalStorage(tmp_path)
    assert storage.supports(Split.TRAIN)
    assert storage.supports("test")
    assert not storage.supports(Split.VALIDATION)
    assert storage.document_path(Split.TRAIN) == tmp_path / "annotations" / "instances_train2017.json"
    assert storage.document_path(Split.TEST) == tmp_path / "annotations" / "instances_val2017.json"
    assert storage.image_dir(Split.TEST) == "val2017"
    assert storage.resolve_image_path("train2017/a.jpg") == str(tmp_path / "train2017" / "a.jpg")
    with pytest.raises(UnsupportedSplitError):
        storage.document_path(Split.VALIDATION)
    with pytest.raises(UnsupportedSplitError, match="unknown split"):
        storage.supports("dev")


def test_local_storage_custom_mapping(tmp_path):
    storage = LocalStorage(tmp_path, documents={Split.VALIDATION: "val.json"}, image_dirs={})
    assert storage.supports(Split.VALIDATION)
    assert not storage.supports(Split.TRAIN)
    assert storage.image_dir(Split.VALIDATION) is None
    with pytest.raises(FileNotFoundError):
        storage.resolve_document(Split.VALIDATION)


def test_default_cache_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("COCODET_CACHE_DIR", str(tmp_path))
    assert storage_mod.default_cache_dir() == tmp_path
    monkeypatch.delenv("COCODET_CACHE_DIR")
    assert storage_mod.default_cache_dir() == Path.home() / ".cache" / "cocodet"


def test_repository_downloads_once(monkeypatch, tmp_path):
    calls = []

    def fake_download(url, download_root, **kwargs):
        calls.append(url)
        ann = Path(download_root) / "annotations"
        ann.mkdir(parents=True, exist_ok=True)
        (ann / "instances_train2017.json").write_text("{}")
        (ann / "instances_val2017.json").write_text("{}")

    monkeypatch.setattr(storage_mod, "download_and_extract_archive", fake_download)
    repo = CocoRepository(tmp_path)
    assert repo.root == tmp_path / "coco" / "2017"

    path = repo.resolve_document(Split.TRAIN)
    assert path == repo.root / "annotations" / "instances_train2017.json"
    repo.resolve_document(Split.TEST)
    repo.resolve_document(Split.TRAIN)
    assert calls == ["http://images.cocodataset.org/annotations/annotations_trainval2017.zip"]
    assert repo.resolve_image_path("val2017/x.jpg") == str(repo.root / "val2017" / "x.jpg")


def test_repository_image_archives(monkeypatch, tmp_path):
    calls = []

    def fake_download(url, download_root, **kwargs):
        calls.append(url)
        (Path(download_root) / "val2017").mkdir(parents=True, exist_ok=True)

    monkeypatch.setattr(storage_mod, "download_and_extract_archive", fake_download)
    repo = CocoRepository(tmp_path, base_url="http://mirror.example/")
    assert repo.download_split_images(Split.TEST) == repo.root / "val2017"
    repo.download_split_images(Split.TEST)
    assert calls == ["http://mirror.example/zips/val2017.zip"]
    with pytest.raises(UnsupportedSplitError):
        repo.download_split_images(Split.VALIDATION)


def test_repository_rejects_validation(tmp_path):
    repo = CocoRepository(tmp_path)
    assert not repo.supports(Split.VALIDATION)
    with pytest.raises(UnsupportedSplitError):
        repo.resolve_document(Split.VALIDATION)
