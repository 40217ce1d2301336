# -*- coding: utf-8 -*-
# Copyright 2006-2025 Mark Diekhans
import pytest
import sys
import os
import os.path as osp
import stat

sys.path = [osp.normpath(osp.dirname(__file__) + "/../lib"),
            osp.normpath(osp.dirname(__file__))] + sys.path

from fifostreams import paths, mkfifo, mktempfifo, mktempfile, has_fifo_support, UnsupportedPlatformError

needs_fifo = pytest.mark.skipif(not has_fifo_support(), reason="named pipes not supported")

def get_perms(path):
    return stat.S_IMODE(os.stat(path).st_mode)

@needs_fifo
def test_mkfifo(tmp_path):
    path = str(tmp_path / "pipe")
    assert mkfifo(path) == path
    assert paths.is_fifo(path)
    assert get_perms(path) == 0o600
    with pytest.raises(FileExistsError):
        mkfifo(path)

@needs_fifo
def test_mkfifo_ignores_umask(tmp_path):
    path = str(tmp_path / "pipe")
    prevMask = os.umask(0o077)
    try:
        mkfifo(path, 0o644)
    finally:
        os.umask(prevMask)
    assert get_perms(path) == 0o644

def test_mkfifo_unsupported(monkeypatch, tmp_path):
    monkeypatch.setattr(paths, "has_fifo_support", lambda: False)
    with pytest.raises(UnsupportedPlatformError):
        mkfifo(str(tmp_path / "pipe"))

@needs_fifo
def test_mktempfifo(tmp_path):
    path = mktempfifo(str(tmp_path), mode=0o620)
    assert osp.dirname(path) == str(tmp_path)
    assert paths.is_fifo(path)
    assert get_perms(path) == 0o620
    assert path in paths._tempPaths
    paths.remove_path(path)
    assert not osp.lexists(path)
    assert path not in paths._tempPaths

@needs_fifo
def test_mktempfifo_unique(tmp_path):
    made = [mktempfifo(str(tmp_path), cleanup=False) for _ in range(10)]
    assert len(set(made)) == 10
    assert not any(p in paths._tempPaths for p in made)

def test_mktempfile(tmp_path):
    path = mktempfile(str(tmp_path))
    assert stat.S_ISREG(os.stat(path).st_mode)
    assert os.path.getsize(path) == 0
    assert get_perms(path) == 0o600
    paths.remove_path(path)

def test_mkfile_existing(tmp_path):
    path = str(tmp_path / "data")
    with open(path, "w") as fh:
        fh.write("keep me\n")
    paths.mkfile(path, 0o600)
    with open(path) as fh:
        assert fh.read() == "keep me\n"

def test_remove_missing(tmp_path):
    # not an error
    paths.remove_path(str(tmp_path / "never"))

def test_exit_cleanup(tmp_path):
    kept = mktempfile(str(tmp_path), cleanup=False)
    cleaned = mktempfile(str(tmp_path), cleanup=True)
    paths._remove_temp_paths()
    assert not osp.exists(cleaned)
    assert osp.exists(kept)
    assert len(paths._tempPaths) == 0
