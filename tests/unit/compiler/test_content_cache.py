"""Unit tests for ContentCache.

This module tests:
- Static and inline materialization
- Exactly-once deployment per fingerprint, also under concurrency
- First-writer-wins policy and extension
- Write failures surfacing as DeploymentError
"""

from __future__ import annotations

import base64
import threading
from pathlib import Path

import pytest

from rebundle_core.compiler.content_cache import ContentCache, guess_mime_type
from rebundle_core.compiler.models import DeploymentPolicy, ResourceHandle, compute_fingerprint
from rebundle_core.errors import DeploymentError


def _handle(content: bytes, name: str = "logo.png") -> ResourceHandle:
    return ResourceHandle(path=Path("/res") / name, name=name, content=content)


class TestStaticDeployment:
    """Tests for static (hashed file) deployment."""

    def test_writes_hashed_file(self, tmp_path: Path) -> None:
        """Static artifacts are named <fingerprint><ext>."""
        cache = ContentCache(output_dir=tmp_path, url_prefix="/static/")
        content = b"\x89PNG fake"

        artifact = cache.get_or_deploy(_handle(content), DeploymentPolicy.STATIC)

        fingerprint = compute_fingerprint(content)
        assert artifact.fingerprint == fingerprint
        assert artifact.file_name == f"{fingerprint}.png"
        assert artifact.reference == f"/static/{fingerprint}.png"
        assert artifact.mime_type == "image/png"
        assert (tmp_path / artifact.file_name).read_bytes() == content

    def test_no_temporary_files_left(self, tmp_path: Path) -> None:
        """Atomic writes leave only the final file."""
        cache = ContentCache(output_dir=tmp_path)
        artifact = cache.get_or_deploy(_handle(b"abc"), DeploymentPolicy.STATIC)
        assert [p.name for p in tmp_path.iterdir()] == [artifact.file_name]

    def test_extensionless_resource(self, tmp_path: Path) -> None:
        """Resources without an extension get .bin."""
        cache = ContentCache(output_dir=tmp_path)
        artifact = cache.get_or_deploy(_handle(b"abc", "LICENSE"), DeploymentPolicy.STATIC)
        assert artifact.file_name is not None
        assert artifact.file_name.endswith(".bin")
        assert artifact.mime_type == "application/octet-stream"

    def test_static_without_output_dir(self) -> None:
        """Static deployment needs an output directory."""
        with pytest.raises(DeploymentError):
            ContentCache().get_or_deploy(_handle(b"abc"), DeploymentPolicy.STATIC)

    def test_unwritable_output_dir(self, tmp_path: Path) -> None:
        """OS errors while writing become DeploymentError."""
        blocker = tmp_path / "static"
        blocker.write_text("not a directory")
        cache = ContentCache(output_dir=blocker)

        with pytest.raises(DeploymentError) as exc_info:
            cache.get_or_deploy(_handle(b"abc"), DeploymentPolicy.STATIC)
        assert str(blocker) in exc_info.value.path

    def test_existing_file_reused(self, tmp_path: Path) -> None:
        """A file already present under the hashed name is kept."""
        content = b"abc"
        existing = tmp_path / f"{compute_fingerprint(content)}.png"
        existing.write_bytes(content)
        mtime = existing.stat().st_mtime_ns

        ContentCache(output_dir=tmp_path).get_or_deploy(_handle(content), DeploymentPolicy.STATIC)

        assert existing.stat().st_mtime_ns == mtime


class TestInlineDeployment:
    """Tests for inline (data URI) deployment."""

    def test_data_uri(self, tmp_path: Path) -> None:
        """Inline artifacts are base64 data URIs and write nothing."""
        cache = ContentCache(output_dir=tmp_path)
        artifact = cache.get_or_deploy(_handle(b"hello", "a.txt"), DeploymentPolicy.INLINE)

        assert artifact.reference == "data:text/plain;base64," + base64.b64encode(b"hello").decode()
        assert artifact.file_name is None
        assert list(tmp_path.iterdir()) == []

    def test_inline_without_output_dir(self) -> None:
        """Inline builds do not need an output directory."""
        artifact = ContentCache().get_or_deploy(_handle(b"x"), DeploymentPolicy.INLINE)
        assert artifact.reference.startswith("data:image/png;base64,")


class TestDeduplication:
    """Tests for at-most-once materialization."""

    def test_same_content_deployed_once(self, tmp_path: Path) -> None:
        """Identical bytes under different names share one artifact."""
        cache = ContentCache(output_dir=tmp_path)

        first = cache.get_or_deploy(_handle(b"same", "a.png"), DeploymentPolicy.STATIC)
        second = cache.get_or_deploy(_handle(b"same", "b.png"), DeploymentPolicy.STATIC)

        assert first == second
        assert len(cache) == 1
        assert cache.stats.misses == 1
        assert cache.stats.hits == 1
        assert len(list(tmp_path.iterdir())) == 1

    def test_first_writer_wins(self, tmp_path: Path) -> None:
        """Later requests get the first artifact whatever they ask for."""
        cache = ContentCache(output_dir=tmp_path)

        first = cache.get_or_deploy(_handle(b"same", "a.png"), DeploymentPolicy.INLINE)
        second = cache.get_or_deploy(_handle(b"same", "b.gif"), DeploymentPolicy.STATIC)

        assert second is first
        assert second.policy is DeploymentPolicy.INLINE
        assert list(tmp_path.iterdir()) == []

    def test_concurrent_requests_materialize_once(self, tmp_path: Path) -> None:
        """Threads racing on one fingerprint see a single artifact."""
        cache = ContentCache(output_dir=tmp_path)
        barrier = threading.Barrier(8)
        results = []
        lock = threading.Lock()

        def deploy() -> None:
            barrier.wait()
            artifact = cache.get_or_deploy(_handle(b"shared" * 1000), DeploymentPolicy.STATIC)
            with lock:
                results.append(artifact)

        threads = [threading.Thread(target=deploy) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(r == results[0] for r in results)
        assert cache.stats.misses == 1
        assert cache.stats.hits == 7
        assert len(list(tmp_path.iterdir())) == 1

    def test_artifacts_sorted(self, tmp_path: Path) -> None:
        """artifacts() is keyed by fingerprint in sorted order."""
        cache = ContentCache(output_dir=tmp_path)
        for content in (b"one", b"two", b"three"):
            cache.get_or_deploy(_handle(content), DeploymentPolicy.STATIC)

        artifacts = cache.artifacts()

        assert list(artifacts) == sorted(artifacts)
        assert cache.get(compute_fingerprint(b"two")) == artifacts[compute_fingerprint(b"two")]
        assert cache.get("0" * 64) is None


class TestGuessMimeType:
    """Tests for guess_mime_type()."""

    @pytest.mark.parametrize(
        ("extension", "expected"),
        [(".png", "image/png"), (".css", "text/css"), (".nope", "application/octet-stream")],
    )
    def test_guess(self, extension: str, expected: str) -> None:
        """Known extensions map to MIME types."""
        assert guess_mime_type(extension) == expected
