"""
L0 Data: fixed names and tables.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# ── Catalog (tools/<id>/...) ────────────────────────────────────

TOOL_DESCRIPTOR = "descriptor.yml"
POST_INSTALL = "post-install.sh"
SHELL_TEMPLATE = "bash-template.txt"

# Descriptors are looked up at most this deep below the catalog root
CATALOG_MAX_DEPTH = 3

# ── Root layout ─────────────────────────────────────────────────

INIT_SCRIPT = ".init.bash"
ACTIVE_PROFILE_LINK = "profile"
CURRENT_PROFILE_MARKER = "current"
DEFAULT_PROFILE = "default"
ROOT_LOCK = ".provisio.lock"

# ── Shell stanza ────────────────────────────────────────────────

BEGIN_PROVISIO_STANZA = "#---- provisio-start ----"
END_PROVISIO_STANZA = "#---- provisio-end ----"
PROVISIO_STANZA_BODY = "[ -f ${HOME}/.provisio/bin/profiles/profile/.init.bash ] && source ${HOME}/.provisio/bin/profiles/profile/.init.bash"
SHELL_FILE_BACKUP_SUFFIX = ".provisio_backup"
SHELL_FILE_LOCK_SUFFIX = ".provisio_lock"

# First existing file wins; the first entry is created when none exist.
SHELL_INIT_CANDIDATES: tuple[str, ...] = (
    ".bash_profile",
    ".bash_login",
    ".profile",
    ".bashrc",
    ".zprofile",
    ".zshrc",
)

# ── Platform normalisation ──────────────────────────────────────

# platform.machine() → Go-style names used by most release assets.
# Descriptors override per tool with `archMappings`.
ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armhf",
    "i686": "i386",
    "i386": "i386",
}

# platform.system().lower() → normalised OS names
OS_MAP: dict[str, str] = {
    "darwin": "darwin",
    "linux": "linux",
    "windows": "windows",
}

USER_AGENT = "provisio/1.0"
