"""
Reconcile dispatch. Every controller reconcile ends in one of three outcomes:
success, a retryable failure that is requeued with backoff, or a pause while a
monitor waits on an external condition. The outcome is decided by the type of
what the reconcile produced, never by its message.
"""

# Standard
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional
import abc
import datetime

# First Party
import alog

# Local
from . import config
from .cloud_manager import PlatformManager
from .exceptions import WaitForMonitor
from .utils import format_resource

log = alog.use_channel("RECONCILE")


## Data models #################################################################


class ReconcileOutcome(Enum):
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    PENDING = "pending"


@dataclass
class RequeueParams:
    """RequeueParams holds parameters for requeue request"""

    requeue_after: datetime.timedelta = field(
        default_factory=lambda: datetime.timedelta(
            seconds=float(config.requeue_after_seconds)
        )
    )


@dataclass
class ReconcileResult:
    """ReconcileResult is the tagged result of a single reconcile attempt"""

    outcome: ReconcileOutcome
    # Flag to control requeue of current reconcile request
    requeue: bool = False
    # Parameters for requeue request
    requeue_params: RequeueParams = field(default_factory=RequeueParams)
    # The failure, if the reconcile raised one
    exception: Optional[Exception] = None
    # Reason given for a pause
    message: str = ""

    @property
    def is_pending(self) -> bool:
        return self.outcome == ReconcileOutcome.PENDING

    @property
    def is_failure(self) -> bool:
        return self.outcome == ReconcileOutcome.RETRYABLE_FAILURE


## Dispatch ####################################################################


def safe_reconcile(
    reconcile_fn: Callable[[dict], Optional[WaitForMonitor]],
    resource: dict,
) -> ReconcileResult:
    """Run a reconcile function and classify what it produced. This function
    never raises.

    Args:
        reconcile_fn:  Callable[[dict], Optional[WaitForMonitor]]
            The reconcile to run. It may return or raise a WaitForMonitor to
            pause.
        resource:  dict
            The resource being reconciled

    Returns:
        result:  ReconcileResult
            The classified outcome
    """
    try:
        signal = reconcile_fn(resource)
    except WaitForMonitor as pause:
        signal = pause
    except Exception as exc:  # pylint: disable=broad-except
        log.warning(
            "Handling caught error in reconcile of [%s]: %s",
            format_resource(resource),
            exc,
            exc_info=True,
        )
        log.info(
            "Requeuing [%s] due to error during reconcile", format_resource(resource)
        )
        return ReconcileResult(
            outcome=ReconcileOutcome.RETRYABLE_FAILURE, requeue=True, exception=exc
        )

    if isinstance(signal, WaitForMonitor):
        log.info(
            "Reconcile of [%s] paused: %s", format_resource(resource), signal.message
        )
        return ReconcileResult(outcome=ReconcileOutcome.PENDING, message=signal.message)

    return ReconcileResult(outcome=ReconcileOutcome.SUCCESS)


## Controller ##################################################################


class Controller(abc.ABC):
    """Base class for the controller of one resource kind. Controllers share
    the PlatformManager they are constructed with.
    """

    group: str = None
    version: str = None
    kind: str = None

    def __init__(self, manager: PlatformManager):
        assert self.group and self.version and self.kind, (
            f"{self.__class__.__name__} must define group, version and kind"
        )
        self.manager = manager

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"

    @abc.abstractmethod
    def reconcile(self, resource: dict) -> Optional[WaitForMonitor]:
        """Bring the external system in line with the resource. Return (or
        raise) the signal of PlatformManager.start_monitor to pause.
        """

    @alog.logged_function(log.debug)
    def run_reconcile(self, resource: dict) -> ReconcileResult:
        """Entrypoint used by the hosting framework"""
        return safe_reconcile(self.reconcile, resource)
