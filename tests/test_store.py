"""Tests for the runtime store.

These tests verify download-once semantics, cleanup on failure and the
store-wide lock.
"""

import io
import tarfile
import threading
import time

import httpx
import pytest
import respx

from jlink_online.errors import ExtractionError, FetchError
from jlink_online.runtimes.store import (
    STAGING_SUFFIX,
    RuntimeStore,
    find_runtime_root,
    store_lock,
)
from jlink_online.types import ReleaseDescriptor

LINK = "https://github.com/download/OpenJDK11U-jdk_x64_linux_hotspot_11.0.8_10.tar.gz"


def make_runtime_archive(root: str = "jdk-11.0.8+10") -> bytes:
    """Create an in-memory .tar.gz that looks like a runtime."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in {
            f"{root}/bin/jlink": b"#!/bin/sh\n",
            f"{root}/jmods/java.base.jmod": b"jmod",
        }.items():
            info = tarfile.TarInfo(name=name)
            info.size = len(content)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


@pytest.fixture
def descriptor():
    return ReleaseDescriptor(
        architecture="x64",
        platform="linux",
        implementation="hotspot",
        version="11.0.8+10",
        file_name="OpenJDK11U-jdk_x64_linux_hotspot_11.0.8_10.tar.gz",
        link=LINK,
    )


@pytest.fixture
def store(tmp_path):
    with httpx.Client() as client:
        yield RuntimeStore(client, tmp_path / "cache", tmp_dir=tmp_path / "tmp")


class TestMaterialize:
    """Tests for RuntimeStore.materialize."""

    @respx.mock
    def test_downloads_and_extracts(self, store, descriptor):
        """Should extract the archive and return the runtime root."""
        respx.get(LINK).mock(
            return_value=httpx.Response(200, content=make_runtime_archive())
        )

        handle = store.materialize(descriptor)

        assert handle.descriptor == descriptor
        assert handle.path.name == "jdk-11.0.8+10"
        assert (handle.path / "bin" / "jlink").exists()
        assert store.is_cached(descriptor)
        assert store.runtime_dir(descriptor).name == (
            "OpenJDK11U-jdk_x64_linux_hotspot_11.0.8_10"
        )

    @respx.mock
    def test_cached_runtime_is_reused(self, store, descriptor):
        """A second call should not download again."""
        route = respx.get(LINK).mock(
            return_value=httpx.Response(200, content=make_runtime_archive())
        )

        first = store.materialize(descriptor)
        second = store.materialize(descriptor)

        assert first == second
        assert route.call_count == 1

    @respx.mock
    def test_concurrent_requests_download_once(self, store, descriptor):
        """Simultaneous requests should share a single download."""
        archive = make_runtime_archive()

        def slow_response(request):
            time.sleep(0.05)
            return httpx.Response(200, content=archive)

        route = respx.get(LINK).mock(side_effect=slow_response)

        handles = []
        errors = []

        def worker() -> None:
            try:
                handles.append(store.materialize(descriptor))
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert route.call_count == 1
        assert len(handles) == 4
        assert all((h.path / "jmods" / "java.base.jmod").exists() for h in handles)
        assert len({h.path for h in handles}) == 1

    @respx.mock
    def test_download_failure_leaves_no_trace(self, store, descriptor):
        respx.get(LINK).mock(return_value=httpx.Response(500))

        with pytest.raises(FetchError):
            store.materialize(descriptor)

        runtime_dir = store.runtime_dir(descriptor)
        assert not runtime_dir.exists()
        assert not runtime_dir.with_name(runtime_dir.name + STAGING_SUFFIX).exists()

    @respx.mock
    def test_extraction_failure_cleans_up(self, store, descriptor):
        """A corrupt archive should not leave a cache entry behind."""
        respx.get(LINK).mock(return_value=httpx.Response(200, content=b"garbage"))

        with pytest.raises(ExtractionError):
            store.materialize(descriptor)

        runtime_dir = store.runtime_dir(descriptor)
        assert not runtime_dir.exists()
        assert not runtime_dir.with_name(runtime_dir.name + STAGING_SUFFIX).exists()

    @respx.mock
    def test_retry_after_failure(self, store, descriptor):
        """A failed population should not block a later attempt."""
        route = respx.get(LINK)
        route.side_effect = [
            httpx.Response(500),
            httpx.Response(200, content=make_runtime_archive()),
        ]

        with pytest.raises(FetchError):
            store.materialize(descriptor)
        handle = store.materialize(descriptor)

        assert handle.path.exists()


class TestPruneAndSize:
    """Tests for prune and cache_size."""

    @respx.mock
    def test_prune(self, store, descriptor):
        respx.get(LINK).mock(
            return_value=httpx.Response(200, content=make_runtime_archive())
        )
        store.materialize(descriptor)

        assert store.cache_size() > 0
        assert store.prune(descriptor) is True
        assert not store.is_cached(descriptor)
        assert store.prune(descriptor) is False

    def test_cache_size_empty(self, store):
        assert store.cache_size() == 0


class TestFindRuntimeRoot:
    """Tests for find_runtime_root function."""

    def test_conventional_directory(self, tmp_path):
        (tmp_path / "jdk-11.0.8+10").mkdir()
        (tmp_path / "other").mkdir()
        assert find_runtime_root(tmp_path, "11.0.8+10") == tmp_path / "jdk-11.0.8+10"

    def test_single_directory(self, tmp_path):
        """Vendors sometimes name the top directory differently."""
        (tmp_path / "jdk-11.0.8+10-jre").mkdir()
        assert find_runtime_root(tmp_path, "11.0.8+10") == tmp_path / "jdk-11.0.8+10-jre"

    def test_flat_archive(self, tmp_path):
        (tmp_path / "release").write_text("JAVA_VERSION=11")
        assert find_runtime_root(tmp_path, "11.0.8+10") == tmp_path


class TestStoreLock:
    """Tests for store_lock."""

    def test_lock_provides_exclusivity(self):
        """Lock should prevent concurrent access."""
        lock = threading.Lock()
        results = []

        def worker(worker_id: int) -> None:
            with store_lock(lock):
                results.append(f"start-{worker_id}")
                time.sleep(0.05)
                results.append(f"end-{worker_id}")

        thread1 = threading.Thread(target=worker, args=(1,))
        thread2 = threading.Thread(target=worker, args=(2,))

        thread1.start()
        time.sleep(0.01)
        thread2.start()

        thread1.join()
        thread2.join()

        assert results == ["start-1", "end-1", "start-2", "end-2"] or results == [
            "start-2",
            "end-2",
            "start-1",
            "end-1",
        ]

    def test_lock_timeout(self):
        """Lock should raise TimeoutError when held elsewhere."""
        lock = threading.Lock()
        acquired = threading.Event()
        released = threading.Event()

        def holder() -> None:
            with store_lock(lock):
                acquired.set()
                released.wait(timeout=5)

        holder_thread = threading.Thread(target=holder)
        holder_thread.start()
        acquired.wait(timeout=1)

        try:
            with pytest.raises(TimeoutError), store_lock(lock, timeout=0.1):
                pass
        finally:
            released.set()
            holder_thread.join()

    def test_lock_released_on_error(self):
        lock = threading.Lock()

        with pytest.raises(RuntimeError), store_lock(lock):
            raise RuntimeError("boom")

        assert not lock.locked()
