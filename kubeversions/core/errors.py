"""Fatal errors. Everything else degrades to a warning on the affected report."""


class MissingDependencyError(Exception):
    """The kubernetes client or a usable kubeconfig is not available."""


class NoContextsError(Exception):
    """The kubeconfig lists no contexts."""


class ContextUnreachableError(Exception):
    """An explicitly requested context could not be reached."""


class ConfigError(Exception):
    """Invalid configuration (bad YAML, bad filter pattern)."""
