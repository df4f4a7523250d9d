"""
L1 Domain: OS / architecture normalisation (pure apart from ``platform``).

Upstream release names rarely match normalised platform names, so each
descriptor may carry ``osMappings`` / ``archMappings`` tables that are
consulted first.
"""

from __future__ import annotations

import platform

from provisio.core.models.descriptor import ToolDescriptor
from provisio.core.services.provisioning.data.constants import ARCH_MAP, OS_MAP


def normalized_os(system: str | None = None) -> str:
    """Normalised OS name for ``system`` (default: the running host)."""
    raw = (system if system is not None else platform.system()).lower()
    return OS_MAP.get(raw, raw)


def normalized_arch(machine: str | None = None) -> str:
    """Normalised architecture name for ``machine`` (default: the running host)."""
    raw = (machine if machine is not None else platform.machine()).lower()
    return ARCH_MAP.get(raw, raw)


def map_os(os_name: str, tool: ToolDescriptor) -> str:
    """The tool's name for ``os_name``, falling back to the normalised name."""
    return tool.os_mappings.get(os_name, os_name)


def map_arch(arch: str, tool: ToolDescriptor) -> str:
    """The tool's name for ``arch``, falling back to the normalised name."""
    return tool.arch_mappings.get(arch, arch)
