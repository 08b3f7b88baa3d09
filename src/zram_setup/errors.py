"""Exception types for zram-setup."""


class ZramSetupError(Exception):
    """Base class for every fatal zram-setup failure."""

    exit_code = 1


class PrivilegeError(ZramSetupError):
    """Not running as root."""


class DetectionError(ZramSetupError):
    """No supported supervision system was found."""


class InsufficientMemory(ZramSetupError):
    """Computed or overridden size falls below the minimum device size."""

    def __init__(self, total_memory_mb: int, target_size_mb: int, minimum_mb: int) -> None:
        super().__init__(
            f"System RAM too low ({total_memory_mb}MB): "
            f"{target_size_mb}MB is below the {minimum_mb}MB minimum. Not creating zram."
        )
        self.total_memory_mb = total_memory_mb
        self.target_size_mb = target_size_mb
        self.minimum_mb = minimum_mb


class ModuleLoadError(ZramSetupError):
    """The zram kernel module is unavailable or failed to load."""


class DeviceConfigurationError(ZramSetupError):
    """Writing the device capacity failed."""


class SwapActivationError(ZramSetupError):
    """mkswap or swapon failed on the configured device."""


class RegistrationWarning(ZramSetupError):
    """Boot artifact written but not registered with the supervision system.

    Non-fatal: callers log it and carry on.
    """


class PersistenceError(ZramSetupError):
    """A boot artifact could not be written."""
