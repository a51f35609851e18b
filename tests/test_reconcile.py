"""
Tests for the reconcile dispatch and its tagged result
"""
# Standard
import datetime

# Third Party
import pytest

# Local
from cloudmgr.cloud_manager import PlatformManager
from cloudmgr.deploy_manager import DryRunDeployManager
from cloudmgr.exceptions import ClientError, ClusterError, WaitForMonitor
from cloudmgr.reconcile import (
    Controller,
    ReconcileOutcome,
    ReconcileResult,
    RequeueParams,
    safe_reconcile,
)
from cloudmgr.test_helpers.helpers import FlagMonitor, library_config, setup_resource

## Helpers #####################################################################


class HostController(Controller):
    group = "starlingx.windriver.com"
    version = "v1"
    kind = "Host"

    def __init__(self, manager, action):
        super().__init__(manager)
        self.action = action

    def reconcile(self, resource):
        return self.action(self, resource)


## safe_reconcile ##############################################################


def test_success():
    result = safe_reconcile(lambda resource: None, setup_resource())
    assert result.outcome == ReconcileOutcome.SUCCESS
    assert not result.requeue
    assert result.exception is None


def test_returned_pause():
    result = safe_reconcile(
        lambda resource: WaitForMonitor("waiting for host"), setup_resource()
    )
    assert result.outcome == ReconcileOutcome.PENDING
    assert result.is_pending
    assert not result.is_failure
    assert not result.requeue
    assert result.message == "waiting for host"


def test_raised_pause():
    def reconcile(resource):
        raise WaitForMonitor("waiting for host")

    result = safe_reconcile(reconcile, setup_resource())
    assert result.is_pending
    assert not result.requeue
    assert result.exception is None


@pytest.mark.parametrize(
    "error",
    [ClientError("no creds"), ClusterError("conflict"), ValueError("oops")],
)
def test_failure_requeues(error):
    def reconcile(resource):
        raise error

    result = safe_reconcile(reconcile, setup_resource())
    assert result.outcome == ReconcileOutcome.RETRYABLE_FAILURE
    assert result.is_failure
    assert result.requeue
    assert result.exception is error


def test_pause_message_is_not_matched():
    """An error that merely talks about monitors is still a failure"""

    def reconcile(resource):
        raise RuntimeError("WaitForMonitor")

    assert safe_reconcile(reconcile, setup_resource()).is_failure


def test_requeue_params_from_config():
    with library_config(requeue_after_seconds=12):
        params = RequeueParams()
    assert params.requeue_after == datetime.timedelta(seconds=12)


def test_result_defaults():
    result = ReconcileResult(outcome=ReconcileOutcome.SUCCESS)
    assert not result.requeue
    assert result.message == ""


## Controller ##################################################################


@pytest.mark.timeout(5)
def test_controller_pauses_on_monitor():
    manager = PlatformManager(DryRunDeployManager())

    def action(controller, resource):
        return controller.manager.start_monitor(
            FlagMonitor(resource), "waiting for host to unlock"
        )

    controller = HostController(manager, action)
    resource = setup_resource()
    result = controller.run_reconcile(resource)
    assert result.is_pending
    assert result.message == "waiting for host to unlock"
    assert manager.get_monitor(resource) is not None
    manager.cancel_monitor(resource)


def test_controller_api_version():
    controller = HostController(PlatformManager(DryRunDeployManager()), None)
    assert controller.api_version == "starlingx.windriver.com/v1"


def test_controller_requires_gvk():
    class Incomplete(Controller):
        def reconcile(self, resource):
            return None

    with pytest.raises(AssertionError):
        Incomplete(PlatformManager(DryRunDeployManager()))
