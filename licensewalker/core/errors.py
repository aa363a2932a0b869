class LicenseWalkerError(Exception):
    """Base class for every error raised by licensewalker."""


class RegistryError(LicenseWalkerError):
    """The package registry could not return metadata for an identifier."""


class RepositoryError(LicenseWalkerError):
    """A request to the repository host failed."""


class RepositoryReferenceError(LicenseWalkerError):
    """A repository URL does not point at a supported hosting provider."""


class RawUrlError(LicenseWalkerError, ValueError):
    """A content-API URL does not have the shape the raw transform expects."""
