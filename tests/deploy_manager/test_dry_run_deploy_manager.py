"""Tests for the DryRunDeployManager

NOTE: The store is exercised by all of the notification and coordinator
    tests, so the tests here only cover the optimistic concurrency and copy
    semantics.
"""

# Local
from cloudmgr.deploy_manager import DryRunDeployManager
from cloudmgr.test_helpers.helpers import (
    SOME_OTHER_NAMESPACE,
    TEST_NAMESPACE,
    setup_resource,
)


def get(dm, resource):
    return dm.get_object_current_state(
        kind=resource["kind"],
        name=resource["metadata"]["name"],
        namespace=resource["metadata"]["namespace"],
        api_version=resource["apiVersion"],
    )[1]


def test_get_missing():
    assert DryRunDeployManager().get_object_current_state("Host", "nope", "ns") == (
        True,
        None,
    )


def test_created_objects_have_metadata():
    dm = DryRunDeployManager([setup_resource()])
    current = get(dm, setup_resource())
    assert current["metadata"]["uid"]
    assert current["metadata"]["resourceVersion"]


def test_get_returns_copy():
    resource = setup_resource()
    dm = DryRunDeployManager([resource])
    get(dm, resource)["metadata"]["name"] = "changed"
    assert get(dm, resource)["metadata"]["name"] == "controller-0"


def test_filter_by_namespace_and_version():
    dm = DryRunDeployManager(
        [
            setup_resource(name="a"),
            setup_resource(name="b"),
            setup_resource(name="c", namespace=SOME_OTHER_NAMESPACE),
            setup_resource(name="d", api_version="other.group/v1"),
        ]
    )
    success, objects = dm.filter_objects_current_state(
        "Host", TEST_NAMESPACE, "starlingx.windriver.com/v1"
    )
    assert success
    assert sorted(obj["metadata"]["name"] for obj in objects) == ["a", "b"]
    _, all_versions = dm.filter_objects_current_state("Host", TEST_NAMESPACE)
    assert len(all_versions) == 3


def test_update_bumps_resource_version():
    resource = setup_resource()
    dm = DryRunDeployManager([resource])
    current = get(dm, resource)
    current["spec"] = {"a": 1}
    success, updated = dm.update_object_current_state(current)
    assert success
    assert updated["spec"] == {"a": 1}
    assert updated["metadata"]["resourceVersion"] != current["metadata"]["resourceVersion"]
    assert updated["metadata"]["uid"] == current["metadata"]["uid"]


def test_update_stale_rejected():
    resource = setup_resource()
    dm = DryRunDeployManager([resource])
    stale = get(dm, resource)
    assert dm.update_object_current_state(get(dm, resource))[0]
    assert dm.update_object_current_state(stale) == (False, None)


def test_update_stale_allowed_when_not_strict():
    resource = setup_resource()
    dm = DryRunDeployManager([resource], strict_resource_version=False)
    stale = get(dm, resource)
    assert dm.update_object_current_state(get(dm, resource))[0]
    assert dm.update_object_current_state(stale)[0]


def test_update_missing():
    assert DryRunDeployManager().update_object_current_state(setup_resource()) == (
        False,
        None,
    )
