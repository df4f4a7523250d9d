"""
L5 Orchestration: provision one (tool, version).

    installs/<id>/<version> exists?  ── yes ──▶ fast path (no download, no extraction)
            │ no
            ▼
    resolve artifact (cache / download) ──▶ install with the packaging strategy
            │
            ▼
    layout = file       ──▶ symlink profiles/<profile>/<executable> → target
    layout = directory  ──▶ exported paths relative to installs/

The existence of the installation directory is the only idempotency
signal. Its contents are never re-verified.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import assert_never

from provisio.core.config.loader import ProvisioConfig
from provisio.core.errors import (
    CatalogError,
    InstallError,
    ProvisioError,
)
from provisio.core.models.descriptor import Layout, ToolDescriptor
from provisio.core.models.result import ToolProvisioningResult
from provisio.core.services.provisioning.data.constants import DEFAULT_PROFILE
from provisio.core.services.provisioning.domain.platform import (
    map_arch,
    map_os,
    normalized_arch,
    normalized_os,
)
from provisio.core.services.provisioning.domain.templating import interpolate_tool_path
from provisio.core.services.provisioning.execution import unpack
from provisio.core.services.provisioning.execution.download import ArtifactResolver
from provisio.core.services.provisioning.resolver.catalog import lookup

logger = logging.getLogger(__name__)


class ToolProvisioner:
    """Installs tools under ``bin/installs`` and links them into one profile's binary directory.

    Args:
        config: Provisio roots and tunables.
        catalog: Read-only id → descriptor mapping.
        profile: Profile whose binary directory receives file-layout symlinks.
        resolver: Artifact resolver (default: one over ``config.cache_dir``).
        os_name: Normalised OS name (default: the running host).
        arch: Normalised architecture (default: the running host).
    """

    def __init__(
        self,
        config: ProvisioConfig,
        catalog: Mapping[str, ToolDescriptor],
        *,
        profile: str = DEFAULT_PROFILE,
        resolver: ArtifactResolver | None = None,
        os_name: str | None = None,
        arch: str | None = None,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.profile = profile
        self.os_name = os_name or normalized_os()
        self.arch = arch or normalized_arch()
        self.resolver = resolver or ArtifactResolver(
            config.cache_dir,
            timeout=config.download_timeout,
            os_name=self.os_name,
            arch=self.arch,
        )

    @property
    def profile_bin_dir(self) -> Path:
        return self.config.profile_bin_dir(self.profile)

    def tool(self, tool_id: str) -> ToolDescriptor:
        return lookup(self.catalog, tool_id)

    def installation_path(self, tool: ToolDescriptor, version: str) -> Path:
        return self.config.installs_dir / tool.id / version

    def mapped_os(self, tool: ToolDescriptor) -> str:
        return map_os(self.os_name, tool)

    def mapped_arch(self, tool: ToolDescriptor) -> str:
        return map_arch(self.arch, tool)

    def provision_tool(self, tool: ToolDescriptor | str, version: str | None = None) -> ToolProvisioningResult:
        """Install ``tool`` at ``version`` (default: the descriptor's default version).

        Raises:
            UnknownToolError: ``tool`` is an id missing from the catalog.
            DownloadError, UnsupportedPackagingError, InstallError: see the
                resolver and the installation strategies.
        """
        descriptor = self.tool(tool) if isinstance(tool, str) else tool
        version = version or descriptor.default_version
        if not version:
            raise CatalogError(
                f"No version requested and tool '{descriptor.id}' declares no defaultVersion",
                tool=descriptor.id,
            )

        try:
            return self._provision(descriptor, version)
        except ProvisioError as e:
            raise e.attach(tool=descriptor.id, version=version)

    def _provision(self, tool: ToolDescriptor, version: str) -> ToolProvisioningResult:
        installation = self.installation_path(tool, version)
        cached = installation.exists()

        if cached:
            logger.debug("%s %s already installed at %s", tool.id, version, installation)
        else:
            artifact = self.resolver.resolve(tool, version)
            unpack.install(artifact, tool.packaging, installation, executable=tool.executable_name)
            logger.info("Installed %s %s into %s", tool.id, version, installation)

        result = ToolProvisioningResult(
            tool_id=tool.id,
            version=version,
            installation=installation,
            cached=cached,
        )

        if tool.layout is Layout.FILE:
            result.link = self._link_executable(tool, version, fresh=not cached)
        elif tool.layout is Layout.DIRECTORY:
            result.paths = self.exported_paths(tool, version)
        else:
            assert_never(tool.layout)

        return result

    def executable_target(self, tool: ToolDescriptor, version: str) -> Path:
        """The file a file-layout tool exposes inside its installation."""
        installation = self.installation_path(tool, version)
        if tool.tar_single_file_to_extract:
            path = interpolate_tool_path(
                tool.tar_single_file_to_extract, tool, version,
                os_name=self.os_name, arch=self.arch,
            )
            return (installation / path).absolute()
        return (installation / tool.executable_name).absolute()

    def exported_paths(self, tool: ToolDescriptor, version: str) -> list[Path]:
        """Directory-layout exports, relative to the installs root.

        A descriptor without ``paths`` exports the installation root itself.
        """
        installation = self.installation_path(tool, version)
        templates = tool.paths or ("",)
        exported: list[Path] = []
        for template in templates:
            rel = interpolate_tool_path(template, tool, version, os_name=self.os_name, arch=self.arch)
            exported.append((installation / rel).relative_to(self.config.installs_dir))
        return exported

    def _link_executable(self, tool: ToolDescriptor, version: str, *, fresh: bool) -> Path:
        target = self.executable_target(tool, version)
        link = self.profile_bin_dir / tool.executable_name

        if fresh and target.is_file() and not os.access(target, os.X_OK):
            # zip archives often drop the executable bit
            os.chmod(target, target.stat().st_mode | 0o111)

        if os.path.lexists(link):
            logger.debug("Link %s already exists, leaving it", link)
            return link

        try:
            self.profile_bin_dir.mkdir(parents=True, exist_ok=True)
            os.symlink(target, link)
        except OSError as e:
            raise InstallError(f"Cannot link {link} → {target}: {e}") from e
        logger.info("Linked %s → %s", link, target)
        return link
