"""Content-addressed deployment cache for rebundle.

ContentCache maps a content fingerprint to the single DeployedArtifact
created for those bytes. It is shared by every GenerationSession of a build
and guarantees at most one materialization per unique content:

- The first request for a fingerprint materializes it (writes a hashed file
  or builds a data URI) and stores the result
- Later requests return the stored artifact unchanged, whatever policy they
  ask for (first writer wins)
- Concurrent requests for the same fingerprint block on a per-fingerprint
  lock, so exactly one materialization occurs
"""

from __future__ import annotations

import base64
import mimetypes
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path

import structlog

from rebundle_core.compiler.models import DeployedArtifact, DeploymentPolicy, ResourceHandle
from rebundle_core.errors import DeploymentError

logger = structlog.get_logger(__name__)

# Extension used when the first writer's path has none
DEFAULT_EXTENSION = ".bin"


def guess_mime_type(extension: str) -> str:
    """Guess a MIME type from a file extension."""
    mime, _ = mimetypes.guess_type(f"resource{extension}")
    return mime or "application/octet-stream"


@dataclass
class CacheStats:
    """Hit/miss counters for a ContentCache."""

    hits: int = 0
    misses: int = 0


class ContentCache:
    """Process-wide, thread-safe fingerprint -> DeployedArtifact cache.

    Attributes:
        output_dir: Directory static artifacts are written to. Required only
            when a static deployment actually happens.
        url_prefix: Prefix prepended to static file names in references.
        stats: Hit/miss counters.

    Example:
        >>> cache = ContentCache(output_dir=Path("build/static"), url_prefix="/static/")
        >>> artifact = cache.get_or_deploy(handle, DeploymentPolicy.STATIC)
        >>> artifact.reference
        '/static/9f86d0...0f00a08.png'
    """

    def __init__(self, output_dir: Path | None = None, url_prefix: str = "") -> None:
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.url_prefix = url_prefix
        self.stats = CacheStats()
        self._artifacts: dict[str, DeployedArtifact] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def get(self, fingerprint: str) -> DeployedArtifact | None:
        """Return the artifact for a fingerprint, if one was deployed."""
        with self._lock:
            return self._artifacts.get(fingerprint)

    def get_or_deploy(self, handle: ResourceHandle, policy: DeploymentPolicy) -> DeployedArtifact:
        """Return the artifact for handle's content, deploying it on first use.

        Args:
            handle: Resource whose bytes are deployed.
            policy: Policy used if this is the first request for the content.

        Returns:
            The canonical DeployedArtifact for the content.

        Raises:
            DeploymentError: If a static artifact cannot be written.
        """
        fingerprint = handle.fingerprint

        with self._lock:
            artifact = self._artifacts.get(fingerprint)
            if artifact is not None:
                self.stats.hits += 1
                return artifact
            fingerprint_lock = self._locks.setdefault(fingerprint, threading.Lock())

        with fingerprint_lock:
            # Another thread may have finished while we waited
            with self._lock:
                artifact = self._artifacts.get(fingerprint)
                if artifact is not None:
                    self.stats.hits += 1
                    return artifact

            artifact = self._materialize(handle, fingerprint, policy)

            with self._lock:
                self._artifacts[fingerprint] = artifact
                self.stats.misses += 1
                self._locks.pop(fingerprint, None)

        logger.info(
            "artifact_deployed",
            fingerprint=fingerprint,
            policy=policy.value,
            reference=artifact.reference if policy is DeploymentPolicy.STATIC else "<inline>",
            source=handle.name,
        )
        return artifact

    def artifacts(self) -> dict[str, DeployedArtifact]:
        """Return all deployed artifacts keyed by fingerprint, sorted."""
        with self._lock:
            return dict(sorted(self._artifacts.items()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._artifacts)

    def _materialize(
        self, handle: ResourceHandle, fingerprint: str, policy: DeploymentPolicy
    ) -> DeployedArtifact:
        extension = handle.extension or DEFAULT_EXTENSION
        mime_type = guess_mime_type(extension)

        if policy is DeploymentPolicy.INLINE:
            encoded = base64.b64encode(handle.content).decode("ascii")
            return DeployedArtifact(
                fingerprint=fingerprint,
                policy=policy,
                reference=f"data:{mime_type};base64,{encoded}",
                mime_type=mime_type,
            )

        file_name = f"{fingerprint}{extension}"
        self._write(file_name, handle.content)
        return DeployedArtifact(
            fingerprint=fingerprint,
            policy=policy,
            reference=f"{self.url_prefix}{file_name}",
            mime_type=mime_type,
            file_name=file_name,
        )

    def _write(self, file_name: str, content: bytes) -> None:
        if self.output_dir is None:
            raise DeploymentError(
                file_name,
                internal_details="Static deployment requested but no output directory is set",
            )

        target = self.output_dir / file_name
        if target.exists():
            # Same name means same bytes
            return

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.output_dir, prefix=".deploy-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(content)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise DeploymentError(str(target), internal_details=str(e)) from e
