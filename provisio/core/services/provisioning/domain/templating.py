"""
L1 Domain: ``{version}`` / ``{os}`` / ``{arch}`` interpolation.

Only those three placeholders are replaced. Shell templates are full of
``${VAR}`` expansions, so ``str.format`` cannot be used here.
"""

from __future__ import annotations

import re

from provisio.core.errors import DownloadError
from provisio.core.models.descriptor import ToolDescriptor
from provisio.core.services.provisioning.domain.platform import (
    map_arch,
    map_os,
    normalized_arch,
    normalized_os,
)

# `{name}` not preceded by `$`, i.e. not a shell expansion
_UNRESOLVED = re.compile(r"(?<!\$)\{([A-Za-z_][A-Za-z0-9_]*)\}")


def template_variables(
    tool: ToolDescriptor,
    version: str,
    *,
    os_name: str | None = None,
    arch: str | None = None,
) -> dict[str, str]:
    """Substitution values for ``tool`` at ``version`` on the given platform."""
    return {
        "version": version,
        "os": map_os(os_name or normalized_os(), tool),
        "arch": map_arch(arch or normalized_arch(), tool),
    }


def interpolate(template: str, variables: dict[str, str]) -> str:
    """Replace ``{key}`` for every key in ``variables``."""
    result = template
    for key, value in variables.items():
        result = result.replace("{" + key + "}", value)
    return result


def interpolate_tool_path(
    template: str,
    tool: ToolDescriptor,
    version: str,
    *,
    os_name: str | None = None,
    arch: str | None = None,
) -> str:
    """Interpolate a path or shell template for ``tool`` at ``version``."""
    return interpolate(template, template_variables(tool, version, os_name=os_name, arch=arch))


def render_download_url(
    tool: ToolDescriptor,
    version: str,
    *,
    os_name: str | None = None,
    arch: str | None = None,
) -> str:
    """Expand the descriptor's URL template.

    Raises:
        DownloadError: If the template is empty or placeholders remain.
    """
    if not tool.url_template:
        raise DownloadError(f"Tool '{tool.id}' has no download URL template", tool=tool.id)
    url = interpolate_tool_path(tool.url_template, tool, version, os_name=os_name, arch=arch)
    leftover = _UNRESOLVED.findall(url)
    if leftover:
        raise DownloadError(
            f"Unresolved placeholder(s) {', '.join(sorted(set(leftover)))} in URL template "
            f"'{tool.url_template}'",
            tool=tool.id,
            version=version,
        )
    return url
