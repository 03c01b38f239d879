"""Surface gating for the MCP entrypoints.

Either surface can be locked behind a key in the environment. Whether a key
is required comes from RuntimeSettings; the key value itself is never logged.
"""

from __future__ import annotations

import logging
import os

from ...config.runtime import McpMode, RuntimeSettings, get_settings

_LOGGER = logging.getLogger("sponsorslots.mcp.auth")

# surface -> (settings flag that turns the gate on, env var holding the key)
SURFACE_KEYS: dict[McpMode, tuple[str, str]] = {
    McpMode.public: ("require_public_key", "MCP_PUBLIC_KEY"),
    McpMode.owner: ("require_owner_key", "MCP_OWNER_KEY"),
}


def resolve_mode(mode: McpMode | str | None, settings: RuntimeSettings | None = None) -> McpMode:
    """Explicit mode if given, else the configured ``mcp_mode``."""
    if mode is None:
        return (settings or get_settings()).mcp_mode
    try:
        return McpMode(mode)
    except ValueError:
        raise ValueError(f"Unknown MCP mode {mode!r}; expected 'public' or 'owner'") from None


def check_scope(mode: McpMode | str | None = None, settings: RuntimeSettings | None = None) -> McpMode:
    """Gate the surface about to start. Returns the resolved mode.

    Raises:
        PermissionError: the surface requires a key and none is set.
        ValueError: unknown mode.
    """
    settings = settings or get_settings()
    surface = resolve_mode(mode, settings)
    flag, env_var = SURFACE_KEYS[surface]
    if getattr(settings, flag) and not os.environ.get(env_var):
        _LOGGER.warning("surface_key_missing", extra={"surface": surface.value, "env_var": env_var})
        raise PermissionError(f"The {surface.value} surface requires {env_var} to be set")
    return surface
