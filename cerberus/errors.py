"""Error taxonomy for config loading, topology resolution and rendering.

Storage failures are not wrapped: the builtin ``OSError`` raised by the
writer reaches the caller unchanged.
"""


class CerberusError(Exception):
    """Base class for every error that aborts a generation run."""


class ConfigError(CerberusError, ValueError):
    """Structurally invalid input: empty names, zero ports, bad difficulty."""


class TopologyError(CerberusError):
    """The declared nodes cannot form a valid deployment graph."""


class RenderError(CerberusError):
    """A template failed to render for one artifact."""

    def __init__(self, template_id: str, artifact: str, message: str):
        self.template_id = template_id
        self.artifact = artifact
        super().__init__(f"Failed to render {artifact} (template '{template_id}'): {message}")
