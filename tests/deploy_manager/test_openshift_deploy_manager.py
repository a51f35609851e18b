"""Tests for the OpenshiftDeployManager using a mocked DynamicClient"""

# Standard
from unittest import mock

# Third Party
from openshift.dynamic.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ResourceNotFoundError,
)
import pytest

# Local
from cloudmgr.deploy_manager import OpenshiftDeployManager
from cloudmgr.deploy_manager.openshift_deploy_manager import FIELD_MANAGER
from cloudmgr.test_helpers.helpers import TEST_NAMESPACE, setup_resource

## Helpers #####################################################################


def make_api_error(error_class, status):
    exc = mock.Mock(status=status, reason="reason", body="{}", headers={})
    return error_class(exc)


def make_dm():
    client = mock.Mock()
    handle = client.resources.get.return_value
    return OpenshiftDeployManager(client=client), client, handle


## Tests #######################################################################


def test_get_found():
    dm, _, handle = make_dm()
    handle.get.return_value.to_dict.return_value = setup_resource()
    assert dm.get_object_current_state("Host", "controller-0", TEST_NAMESPACE) == (
        True,
        setup_resource(),
    )
    handle.get.assert_called_once_with(name="controller-0", namespace=TEST_NAMESPACE)


def test_get_not_found():
    dm, _, handle = make_dm()
    handle.get.side_effect = make_api_error(NotFoundError, 404)
    assert dm.get_object_current_state("Host", "x", TEST_NAMESPACE) == (True, None)


def test_get_forbidden():
    dm, _, handle = make_dm()
    handle.get.side_effect = make_api_error(ForbiddenError, 403)
    assert dm.get_object_current_state("Host", "x", TEST_NAMESPACE) == (False, None)


def test_get_unknown_kind():
    dm, client, _ = make_dm()
    client.resources.get.side_effect = ResourceNotFoundError("nope")
    assert dm.get_object_current_state("Unknown", "x", TEST_NAMESPACE) == (True, None)


def test_filter():
    dm, _, handle = make_dm()
    handle.get.return_value.to_dict.return_value = {"items": [setup_resource()]}
    assert dm.filter_objects_current_state("Host", TEST_NAMESPACE) == (
        True,
        [setup_resource()],
    )
    handle.get.assert_called_once_with(namespace=TEST_NAMESPACE)


def test_filter_forbidden():
    dm, _, handle = make_dm()
    handle.get.side_effect = make_api_error(ForbiddenError, 403)
    assert dm.filter_objects_current_state("Host", TEST_NAMESPACE) == (False, [])


def test_update():
    dm, _, handle = make_dm()
    resource = setup_resource()
    handle.replace.return_value.to_dict.return_value = resource
    assert dm.update_object_current_state(resource) == (True, resource)
    handle.replace.assert_called_once_with(
        resource,
        name="controller-0",
        namespace=TEST_NAMESPACE,
        field_manager=FIELD_MANAGER,
    )


def test_update_conflict():
    dm, _, handle = make_dm()
    handle.replace.side_effect = make_api_error(ConflictError, 409)
    assert dm.update_object_current_state(setup_resource()) == (False, None)


def test_update_requires_name():
    dm, _, _ = make_dm()
    with pytest.raises(AssertionError):
        dm.update_object_current_state({"kind": "Host", "metadata": {}})
