from typing import Optional


class VeleroHarnessError(Exception):
    """
    Base class for every error raised by the harness.
    """

    pass


class NotFoundError(VeleroHarnessError):
    """
    The requested object does not exist in the cluster (HTTP 404).
    """

    pass


class AlreadyExistsError(VeleroHarnessError):
    """
    A create collided with an existing object (HTTP 409).
    For the Velero CR this means a previous run did not clean up.
    """

    pass


class ConflictError(VeleroHarnessError):
    """
    An update lost a write race: the object changed since it was read (HTTP 409).
    """

    pass


class PollTimeoutError(VeleroHarnessError, TimeoutError):
    """
    A polled condition did not become true before its deadline.
    """

    pass


class TransportError(VeleroHarnessError):
    """
    Any other failure talking to the cluster: API errors, connection errors,
    kubeconfig problems.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
