"""
Provisioning engine: package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate onion layer (data → domain → resolver → execution →
orchestration)::

    from provisio.core.services.provisioning import ProfileProvisioner, load_catalog
"""

# ── Errors ──
from provisio.core.errors import (  # noqa: F401
    CatalogError,
    ConfigError,
    DownloadError,
    InstallError,
    PostInstallError,
    ProvisioError,
    ShellFileError,
    UnknownToolError,
    UnsupportedPackagingError,
)

# ── L2: Resolver ──
from provisio.core.services.provisioning.resolver.catalog import (  # noqa: F401
    load_catalog,
    lookup,
)

# ── L4: Execution ──
from provisio.core.services.provisioning.execution.download import ArtifactResolver  # noqa: F401
from provisio.core.services.provisioning.execution.shell_file import ShellFileModifier  # noqa: F401
from provisio.core.services.provisioning.execution.unpack import install  # noqa: F401

# ── L5: Orchestration ──
from provisio.core.services.provisioning.orchestration.profile_provisioner import (  # noqa: F401
    ProfileProvisioner,
    current_profile,
)
from provisio.core.services.provisioning.orchestration.tool_provisioner import (  # noqa: F401
    ToolProvisioner,
)
