"""
L4 Execution: artifact download and cache.

Maps (descriptor, version) to a locally cached artifact at
``bin/cache/<id>/<version>/<filename>``. The cache trusts its source: an
existing file at that path is returned as-is, with no checksum.

Downloads stream into a temp file in the same directory and are renamed
into place only once complete, so an interrupted or failed download
never looks cached.
"""

from __future__ import annotations

import logging
import os
import posixpath
import tempfile
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path

from provisio.core.config.loader import DEFAULT_DOWNLOAD_TIMEOUT
from provisio.core.errors import DownloadError
from provisio.core.models.descriptor import ToolDescriptor
from provisio.core.services.provisioning.data.constants import USER_AGENT
from provisio.core.services.provisioning.domain.templating import render_download_url

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def _fmt_size(n: int) -> str:
    """Human-readable byte size."""
    size = float(n)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def artifact_filename(url: str, tool: ToolDescriptor, version: str) -> str:
    """Cache file name: the last URL path segment, or ``<id>-<version>``."""
    name = posixpath.basename(urllib.parse.unquote(urllib.parse.urlparse(url).path))
    return name or f"{tool.id}-{version}"


class ArtifactResolver:
    """Resolve (descriptor, version) to a cached artifact, downloading on a miss."""

    def __init__(
        self,
        cache_dir: Path,
        *,
        timeout: int = DEFAULT_DOWNLOAD_TIMEOUT,
        os_name: str | None = None,
        arch: str | None = None,
    ) -> None:
        self.cache_dir = cache_dir
        self.timeout = timeout
        self.os_name = os_name
        self.arch = arch

    def url_for(self, tool: ToolDescriptor, version: str) -> str:
        return render_download_url(tool, version, os_name=self.os_name, arch=self.arch)

    def cache_path(self, tool: ToolDescriptor, version: str) -> Path:
        """Deterministic cache location for (tool, version)."""
        url = self.url_for(tool, version)
        return self.cache_dir / tool.id / version / artifact_filename(url, tool, version)

    def resolve(self, tool: ToolDescriptor, version: str) -> Path:
        """Return the cached artifact, fetching it first on a cache miss.

        Raises:
            DownloadError: On template or transport failure. Nothing is
                left at the cache path.
        """
        url = self.url_for(tool, version)
        target = self.cache_dir / tool.id / version / artifact_filename(url, tool, version)

        if target.is_file():
            logger.debug("Cache hit for %s %s: %s", tool.id, version, target)
            return target

        logger.info("Downloading %s %s from %s", tool.id, version, url)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}_", suffix=".part")
        os.close(fd)
        tmp = Path(tmp_path)
        try:
            size = self._fetch(url, tmp)
            os.replace(tmp, target)
        except DownloadError as e:
            tmp.unlink(missing_ok=True)
            raise e.attach(tool=tool.id, version=version)
        except (urllib.error.URLError, OSError, ValueError) as e:
            tmp.unlink(missing_ok=True)
            raise DownloadError(f"Download of {url} failed: {e}", tool=tool.id, version=version) from e
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

        logger.info("Downloaded %s to %s", _fmt_size(size), target)
        return target

    def _fetch(self, url: str, dest: Path) -> int:
        """Stream ``url`` into ``dest``. Returns the number of bytes written."""
        req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        written = 0
        with urllib.request.urlopen(req, timeout=self.timeout) as resp:
            status = getattr(resp, "status", None)
            if status is not None and status >= 400:
                raise DownloadError(f"Download of {url} failed: HTTP {status}")
            with open(dest, "wb") as f:
                while True:
                    chunk = resp.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    f.write(chunk)
                    written += len(chunk)
        return written
