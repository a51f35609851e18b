"""
This module implements custom exceptions and the reconcile pause signal
"""

## Base Error ##################################################################


class CloudManagerError(Exception):
    """Base class for all cloudmgr exceptions"""

    def __init__(self, message: str, is_fatal_error: bool):
        """Construct with a flag indicating whether this is a fatal error. This
        will be a static property of all children.
        """
        super().__init__(message)
        self._is_fatal_error = is_fatal_error

    @property
    def is_fatal_error(self):
        """Property indicating whether or not this error should stop the
        operator rather than trigger a requeue
        """
        return self._is_fatal_error


## Fatal Errors ################################################################


class ConfigError(CloudManagerError):
    """Exception caused by invalid library or user-provided configuration"""

    def __init__(self, message: str = ""):
        super().__init__(message=message, is_fatal_error=True)


## Retryable Errors ############################################################


class ClientError(CloudManagerError):
    """Exception raised when a platform client could not be built (bad
    credentials, unreachable endpoint, protocol mismatch)
    """

    def __init__(self, message: str = ""):
        super().__init__(message=message, is_fatal_error=False)


class ClusterError(CloudManagerError):
    """Exception raised when an operation against the cluster object store or
    the platform API fails. The message names the operation and the resource.
    """

    def __init__(self, message: str = ""):
        super().__init__(message=message, is_fatal_error=False)


class PlatformError(CloudManagerError):
    """Exception raised when a request through an established platform client
    fails
    """

    def __init__(self, message: str = "", status: int = None):
        super().__init__(message=message, is_fatal_error=False)
        self.status = status


## Control Flow Signals ########################################################


class WaitForMonitor(Exception):
    """WaitForMonitor signals that a monitor has been launched and will trigger
    another reconcile once its criteria have been met. It is an expected
    outcome, not a failure, and therefore does not derive from
    CloudManagerError.
    """

    is_pause = True

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


## Assertions ##################################################################


def assert_config(condition: bool, message: str = ""):
    """Replacement for assert() which will throw a ConfigError"""
    if not condition:
        raise ConfigError(message)


def assert_cluster(condition: bool, message: str = ""):
    """Replacement for assert() which will throw a ClusterError. This should
    be used when an operation in the cluster (such as fetching or updating a
    resource) must succeed.
    """
    if not condition:
        raise ClusterError(message)
