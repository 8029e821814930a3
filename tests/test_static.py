import pytest

from pyslate.static import StaticCopier


def test_copy_preserves_paths_and_bytes(project):
    source = project / "source"
    output = project / "build"
    copier = StaticCopier(source, output)

    copied = copier.copy("images")
    assert sorted(p.relative_to(output).as_posix() for p in copied) == [
        "images/icons/menu.svg",
        "images/logo.png",
    ]
    for src in (source / "images").rglob("*"):
        if src.is_file():
            dest = output / "images" / src.relative_to(source / "images")
            assert dest.read_bytes() == src.read_bytes()

    copier.copy("fonts")
    assert (output / "fonts" / "slate.woff").read_bytes() == b"wOFF\x00\x01\x02binary"


def test_copy_overwrites_in_place(project):
    output = project / "build"
    copier = StaticCopier(project / "source", output)
    copier.copy("fonts")
    (project / "source" / "fonts" / "slate.woff").write_bytes(b"new")
    copier.copy("fonts")
    assert (output / "fonts" / "slate.woff").read_bytes() == b"new"


def test_copy_missing_subtree(tmp_path):
    copier = StaticCopier(tmp_path / "source", tmp_path / "build")
    assert copier.copy("fonts") == []
    assert not (tmp_path / "build").exists()


def test_copy_unknown_kind(tmp_path):
    with pytest.raises(ValueError):
        StaticCopier(tmp_path, tmp_path / "build").copy("videos")
