"""Custom exception classes for the Syncthing mover."""


class MoverException(Exception):
    """
    Base exception class for all mover errors.

    Every subclass is recoverable: the pass is abandoned and retried later.
    """
    pass


class ClusterAPIError(MoverException):
    """
    Raised when the Kubernetes API cannot be reached or rejects a request.
    """
    pass


class ResourceNotFoundError(ClusterAPIError):
    """
    Raised when a requested cluster object does not exist.
    """
    pass


class MissingPreconditionError(MoverException):
    """
    Raised when a caller-provisioned resource (the data volume claim) is absent.

    Retrying will not help until an operator provides the resource.
    """
    pass


class DaemonUnavailableError(MoverException):
    """
    Raised when the Syncthing REST API is unreachable or returns an error status.
    """
    pass


class DaemonResponseError(DaemonUnavailableError):
    """
    Raised when a Syncthing REST API response cannot be decoded.
    """
    pass


class DaemonAuthenticationError(DaemonUnavailableError):
    """
    Raised when the Syncthing REST API rejects the API key (401 or 403).
    """
    pass
