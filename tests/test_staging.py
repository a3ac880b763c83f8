from __future__ import annotations

import asyncio
import os

import pytest

from core.errors import TransferFailed
from core.staging import FALLBACK_FILE_NAME, StagingStore, filename_from_url


def test_release_removes_file_after_normal_exit(tmp_path) -> None:
    store = StagingStore(str(tmp_path))

    with store.acquire("report.pdf") as staged:
        asyncio.run(staged.write(b"hello"))
        path = staged.path
        assert os.path.exists(path)
        assert os.path.dirname(path) == str(tmp_path)
        assert staged.bytes_written == 5

    assert not os.path.exists(path)
    assert staged.released


def test_release_removes_file_when_block_raises(tmp_path) -> None:
    store = StagingStore(str(tmp_path))

    with pytest.raises(RuntimeError):
        with store.acquire("x.bin") as staged:
            path = staged.path
            raise RuntimeError("boom")

    assert not os.path.exists(path)
    assert list(tmp_path.iterdir()) == []


def test_rewind_returns_written_bytes_from_offset_zero(tmp_path) -> None:
    store = StagingStore(str(tmp_path))

    async def scenario() -> bytes:
        with store.acquire("data.txt") as staged:
            await staged.write(b"0123")
            await staged.write(b"456789")
            handle = staged.rewind()
            return handle.read()

    assert asyncio.run(scenario()) == b"0123456789"


def test_concurrent_acquires_get_distinct_files(tmp_path) -> None:
    store = StagingStore(str(tmp_path))

    with store.acquire("same.zip") as first, store.acquire("same.zip") as second:
        assert first.path != second.path
        assert os.path.exists(first.path)
        assert os.path.exists(second.path)

    assert list(tmp_path.iterdir()) == []


def test_name_hint_is_sanitized(tmp_path) -> None:
    store = StagingStore(str(tmp_path))

    with store.acquire("../../etc/pass wd") as staged:
        assert os.path.dirname(staged.path) == str(tmp_path)
        name = os.path.basename(staged.path)
        assert name.startswith("telegram-")
        assert "/" not in name[len("telegram-") :]
        assert " " not in name


def test_double_release_is_rejected(tmp_path) -> None:
    store = StagingStore(str(tmp_path))

    with pytest.raises(RuntimeError, match="already released"):
        with store.acquire("a") as staged:
            staged.release()


def test_staging_root_is_created_on_demand(tmp_path) -> None:
    root = tmp_path / "nested" / "staging"
    store = StagingStore(str(root))

    with store.acquire("a.txt") as staged:
        assert os.path.dirname(staged.path) == str(root)

    assert root.is_dir()


def test_unusable_staging_root_raises_transfer_failed(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    store = StagingStore(str(blocker / "sub"))

    with pytest.raises(TransferFailed) as excinfo:
        with store.acquire("a.txt"):
            pass

    assert excinfo.value.during == "staging"


def test_filename_from_url() -> None:
    assert filename_from_url("https://example.com/files/report%20v2.pdf?x=1") == "report v2.pdf"
    assert filename_from_url("https://example.com/dir/") == "dir"
    assert filename_from_url("https://example.com") == FALLBACK_FILE_NAME
    assert filename_from_url("https://example.com/") == FALLBACK_FILE_NAME
