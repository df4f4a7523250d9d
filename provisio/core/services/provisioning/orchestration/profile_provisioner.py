"""
L5 Orchestration: provision a whole profile.

For every entry, in declaration order, and for every version it lists:

    1. provision the tool (ToolProvisioner)
    2. run its post-install hook, if the tool ships one
    3. directory layout without ``pathManagedBy``: add its shell stanza

Then the profile's ``.init.bash`` is written whole, the active-profile
link is created if absent, the ``current`` marker is rewritten and the
user's shell startup file is pointed at the active profile.

The run is fail-fast: the first error aborts the remaining entries.
Tools installed before the failure stay installed and are skipped
cheaply on the next run. The whole run holds an exclusive lock on
``bin/.provisio.lock`` because the active link, the marker, the init
script and the shell file are single shared slots.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from provisio.core.config.loader import ProvisioConfig
from provisio.core.config.profile_loader import load_profile
from provisio.core.errors import ConfigError, InstallError, ProvisioError
from provisio.core.models.descriptor import Layout, ToolDescriptor
from provisio.core.models.profile import ProfileEntry, ToolProfile
from provisio.core.models.result import ProfileProvisioningResult, ToolProvisioningResult
from provisio.core.persistence.atomic import write_text_atomic
from provisio.core.services.provisioning.data.constants import (
    ACTIVE_PROFILE_LINK,
    CURRENT_PROFILE_MARKER,
    DEFAULT_PROFILE,
    INIT_SCRIPT,
    ROOT_LOCK,
    SHELL_TEMPLATE,
)
from provisio.core.services.provisioning.domain.templating import interpolate_tool_path
from provisio.core.services.provisioning.execution.hooks import HookContext, run_post_install
from provisio.core.services.provisioning.execution.locking import exclusive_lock
from provisio.core.services.provisioning.execution.shell_file import ShellFileModifier
from provisio.core.services.provisioning.orchestration.tool_provisioner import ToolProvisioner

logger = logging.getLogger(__name__)


def current_profile(config: ProvisioConfig) -> str:
    """Name stored in ``bin/profiles/current``, or ``default``."""
    marker = config.profiles_dir / CURRENT_PROFILE_MARKER
    if marker.is_file():
        name = marker.read_text(encoding="utf-8").strip()
        if name:
            return name
    return DEFAULT_PROFILE


class ProfileProvisioner:
    """Drives a ToolProvisioner over every entry of one named profile."""

    def __init__(
        self,
        config: ProvisioConfig,
        catalog: Mapping[str, ToolDescriptor],
        *,
        profile: str = DEFAULT_PROFILE,
        tools: ToolProvisioner | None = None,
        shell: ShellFileModifier | None = None,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.profile = profile
        self.tools = tools or ToolProvisioner(config, catalog, profile=profile)
        self.shell = shell or ShellFileModifier(config.home, config.root)

    # ── Paths ───────────────────────────────────────────────────

    @property
    def profile_bin_dir(self) -> Path:
        return self.config.profile_bin_dir(self.profile)

    @property
    def init_script(self) -> Path:
        return self.profile_bin_dir / INIT_SCRIPT

    @property
    def active_link(self) -> Path:
        return self.config.profiles_dir / ACTIVE_PROFILE_LINK

    # ── Provisioning ────────────────────────────────────────────

    def provision_profile(self, profile: ToolProfile | Path | None = None) -> ProfileProvisioningResult:
        """Provision every entry of ``profile``.

        Args:
            profile: A loaded profile, a path to a ``profile.yaml``, or None
                to load ``profiles/<name>/profile.yaml``.

        Raises:
            ProvisioError: Any failure; its context names the entry, tool and
                version being processed.
        """
        spec = self._load(profile)
        logger.info("Provisioning profile '%s' (%d entries)", self.profile, len(spec.tools))

        with exclusive_lock(self.config.bin_dir / ROOT_LOCK):
            self.profile_bin_dir.mkdir(parents=True, exist_ok=True)
            result = ProfileProvisioningResult(profile=self.profile)
            lines = self._header()

            for entry in spec.entries():
                try:
                    tool = self.tools.tool(entry.name)
                except ProvisioError as e:
                    raise e.attach(entry=entry.name)
                for version in entry.versions() or [tool.default_version]:
                    try:
                        tool_result = self.tools.provision_tool(tool, version)
                        self._post_install(tool, version, tool_result)
                        lines.extend(self._tool_stanza(entry, tool, version, tool_result))
                    except ProvisioError as e:
                        raise e.attach(entry=entry.name, tool=tool.id, version=version)
                    result.tools.append(tool_result)

            write_text_atomic(self.init_script, "".join(lines), mode=0o644)
            result.init_script = self.init_script
            logger.info("Wrote %s", self.init_script)

            self._ensure_active_link()
            self._write_current_marker()
            result.shell_file = self.shell.update_shell_initialization_file()

        return result

    def activate(self) -> Path:
        """Point the active-profile link at this profile, replacing any previous target.

        Provisioning only creates the link when it is missing; switching
        profiles goes through here.
        """
        target = self.profile_bin_dir.absolute()
        if not target.is_dir():
            raise ConfigError(f"Profile '{self.profile}' has not been provisioned: {target} is missing")

        with exclusive_lock(self.config.bin_dir / ROOT_LOCK):
            link = self.active_link
            if link.exists() and not link.is_symlink():
                raise ConfigError(f"{link} exists and is not a symlink")
            tmp = link.with_name(f".{link.name}.{os.getpid()}.tmp")
            tmp.unlink(missing_ok=True)
            os.symlink(target, tmp)
            os.replace(tmp, link)
            self._write_current_marker()
        logger.info("Active profile is now '%s'", self.profile)
        return link

    # ── Steps ───────────────────────────────────────────────────

    def _load(self, profile: ToolProfile | Path | None) -> ToolProfile:
        if isinstance(profile, ToolProfile):
            return profile
        path = profile if profile is not None else self.config.profile_spec(self.profile)
        return load_profile(path, self.profile)

    def _header(self) -> list[str]:
        """Exports written at the top of every init script, in fixed order."""
        try:
            root = "${HOME}/" + self.config.root.relative_to(self.config.home).as_posix()
        except ValueError:
            root = self.config.root.absolute().as_posix()
        return [
            f"export PROVISIO_ROOT={root}\n",
            "export PROVISIO_BIN=${PROVISIO_ROOT}\n",
            "export PROVISIO_INSTALLS=${PROVISIO_ROOT}/bin/installs\n",
            "export PROVISIO_PROFILES=${PROVISIO_ROOT}/bin/profiles\n",
            f"export PROVISIO_ACTIVE_PROFILE=${{PROVISIO_ROOT}}/bin/profiles/{ACTIVE_PROFILE_LINK}\n",
            "export PATH=${PROVISIO_BIN}:${PROVISIO_ACTIVE_PROFILE}:${PATH}\n",
            "\n",
        ]

    def _post_install(self, tool: ToolDescriptor, version: str, result: ToolProvisioningResult) -> None:
        ctx = HookContext(
            functions_library=self.config.functions_library,
            profile_spec=self.config.profile_spec(self.profile),
            profile_bin_dir=self.profile_bin_dir,
            version=version,
            tool_id=tool.id,
            installation=result.installation,
            os_name=self.tools.mapped_os(tool),
            arch=self.tools.mapped_arch(tool),
            installs_dir=self.config.installs_dir,
        )
        run_post_install(self.config.tools_dir / tool.id, ctx, timeout=self.config.hook_timeout)

    def _tool_stanza(
        self,
        entry: ProfileEntry,
        tool: ToolDescriptor,
        version: str,
        result: ToolProvisioningResult,
    ) -> list[str]:
        """Init-script lines for one directory-layout tool version."""
        if tool.layout is not Layout.DIRECTORY:
            return []
        if entry.path_managed_by:
            logger.debug("PATH for %s is managed by %s", tool.id, entry.path_managed_by)
            return []

        lines = [f"# -------------- {tool.id}  --------------\n"]
        template = self.config.tools_dir / tool.id / SHELL_TEMPLATE
        if template.is_file():
            contents = interpolate_tool_path(
                template.read_text(encoding="utf-8"), tool, version,
                os_name=self.tools.os_name, arch=self.tools.arch,
            )
            lines.append(contents if contents.endswith("\n") else contents + "\n")
        else:
            tool_root = f"{tool.env_prefix}_ROOT"
            first, *rest = result.paths
            lines.append(f"export {tool_root}=${{PROVISIO_INSTALLS}}/{first.as_posix()}\n")
            lines.append(f"export PATH=${{{tool_root}}}:${{PATH}}\n")
            for extra in rest:
                lines.append(f"export PATH=${{PROVISIO_INSTALLS}}/{extra.as_posix()}:${{PATH}}\n")
        lines.append("\n")
        return lines

    def _ensure_active_link(self) -> None:
        link = self.active_link
        target = self.profile_bin_dir.absolute()
        if not os.path.lexists(link):
            try:
                os.symlink(target, link)
            except OSError as e:
                raise InstallError(f"Cannot link active profile {link} → {target}: {e}") from e
            logger.info("Linked active profile %s → %s", link, target)
            return
        if link.is_symlink() and Path(os.readlink(link)) != target:
            logger.warning(
                "Active profile link %s points at %s; run 'provisio profile activate %s' to switch",
                link, os.readlink(link), self.profile,
            )

    def _write_current_marker(self) -> None:
        write_text_atomic(self.config.profiles_dir / CURRENT_PROFILE_MARKER, f"{self.profile}\n", mode=0o644)
