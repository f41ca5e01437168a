class BosunError(Exception):
    """
    Base class for engine errors, ``kind`` is a stable identifier
    that callers can use to render an actionable message
    """
    kind = "error"


class ConfigurationError(BosunError):
    """
    Error setting up an object due to incorrect configuration
    """
    kind = "configuration"


class InvalidManifest(BosunError):
    """
    Plugin manifest is missing required fields or has invalid values
    """
    kind = "invalid_manifest"


class DuplicatePlugin(BosunError):
    """
    A plugin with the same id is already installed
    """
    kind = "duplicate_plugin"


class NotFound(BosunError):
    kind = "not_found"


class PluginNotFound(NotFound):
    pass


class SlotNotFound(NotFound):
    pass


class StreamNotFound(NotFound):
    pass


class Protected(BosunError):
    """
    Builtin plugins cannot be uninstalled
    """
    kind = "protected"


class TypeMismatch(BosunError):
    """
    Stream data type does not match the slot's expected data type
    """
    kind = "type_mismatch"


class RegistryUnreachable(BosunError):
    """
    The remote plugin registry could not be contacted, this is transient
    """
    kind = "registry_unreachable"


class InstallFailed(BosunError):
    """
    Plugin payload could not be fetched or verified
    """
    kind = "install_failed"


class PluginFault(BosunError):
    """
    The driver host could not start a plugin
    """
    kind = "plugin_fault"


class ApiError(BosunError):
    """
    Error communicating with a Bosun daemon
    """
    kind = "api"
