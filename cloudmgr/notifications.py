"""
The notification cascade is the synthetic event bus between controllers. A
controller is woken by bumping a counter annotation on the resources it owns,
which changes their persisted representation so that the watch machinery
delivers a new reconcile.
"""

# Standard
from typing import Callable, Iterable
import copy

# First Party
import alog

# Local
from .constants import (
    API_VERSION,
    KIND_SYSTEM,
    NOTIFICATION_COUNT_KEY,
    SYSTEM_DEPENDENCIES,
)
from .deploy_manager import DeployManagerBase
from .exceptions import CloudManagerError, ClusterError, assert_cluster
from .utils import format_resource, get_resource_identity

log = alog.use_channel("NOTIFY")


def get_next_count(value: str) -> str:
    """Take a number in string form and return the next sequential value. A
    missing or malformed value counts as 0.
    """
    count = 0
    if value:
        try:
            count = int(value)
        except ValueError:
            log.info("unexpected annotation value [%s], resetting counter", value)
    return str(count + 1)


def notify_resource(deploy_manager: DeployManagerBase, resource: dict):
    """Force a single resource to be reconciled again. The resource is read
    fresh from the cluster so that the update carries its latest
    resourceVersion.

    Args:
        deploy_manager:  DeployManagerBase
            The cluster object store
        resource:  dict
            Any manifest carrying the apiVersion, kind and metadata name and
            namespace of the resource to notify
    """
    api_version, kind, namespace, name = get_resource_identity(resource)
    identity = format_resource(resource)
    description = f"query resource {identity}"
    success, current = _call_store(
        description,
        deploy_manager.get_object_current_state,
        kind=kind,
        name=name,
        namespace=namespace,
        api_version=api_version,
    )
    assert_cluster(success, f"failed to {description}")
    assert_cluster(current is not None, f"resource {identity} not found")

    _bump_notification_count(deploy_manager, current)
    log.debug2("controller has been notified for [%s]", format_resource(current))


def notify_controllers(
    deploy_manager: DeployManagerBase,
    namespace: str,
    kinds: Iterable[str],
    api_version: str = API_VERSION,
):
    """Bump the notification counter on every instance of each of the listed
    kinds in the namespace. The first failure aborts the iteration; resources
    updated before it stay updated.
    """
    kinds = list(kinds)
    for kind in kinds:
        description = f"query {kind} list in namespace {namespace}"
        success, objects = _call_store(
            description,
            deploy_manager.filter_objects_current_state,
            kind=kind,
            namespace=namespace,
            api_version=api_version,
        )
        assert_cluster(success, f"failed to {description}")

        for obj in objects:
            if obj.get("kind", kind) not in kinds:
                continue
            _bump_notification_count(deploy_manager, obj)
            log.info(
                "controller has been notified for [%s]", format_resource(obj)
            )


def notify_system_dependencies(deploy_manager: DeployManagerBase, namespace: str):
    """Wake every controller that depends on the system of a namespace. This
    should only be run on behalf of the system controller.
    """
    notify_controllers(deploy_manager, namespace, SYSTEM_DEPENDENCIES)


def notify_system_controller(deploy_manager: DeployManagerBase, namespace: str):
    """Wake the system controller of a namespace. There should only be a
    single system, but every instance returned is notified.
    """
    description = f"query system list in namespace {namespace}"
    success, systems = _call_store(
        description,
        deploy_manager.filter_objects_current_state,
        kind=KIND_SYSTEM,
        namespace=namespace,
        api_version=API_VERSION,
    )
    assert_cluster(success, f"failed to {description}")

    for system in systems:
        _bump_notification_count(deploy_manager, system)
        log.info(
            "system controller has been notified for [%s]",
            system.get("metadata", {}).get("name"),
        )


## Implementation ##############################################################


def _bump_notification_count(deploy_manager: DeployManagerBase, resource: dict):
    updated = copy.deepcopy(resource)
    metadata = updated.setdefault("metadata", {})
    annotations = metadata.get("annotations") or {}
    annotations[NOTIFICATION_COUNT_KEY] = get_next_count(
        annotations.get(NOTIFICATION_COUNT_KEY)
    )
    metadata["annotations"] = annotations

    description = (
        f"notify {updated.get('kind')} controller of {format_resource(updated)}"
    )
    success, _ = _call_store(
        description, deploy_manager.update_object_current_state, updated
    )
    assert_cluster(success, f"failed to {description}")


def _call_store(description: str, method: Callable, *args, **kwargs):
    """Call the cluster object store, wrapping transport and API errors in a
    ClusterError that names the operation and the resource
    """
    try:
        return method(*args, **kwargs)
    except CloudManagerError:
        raise
    except Exception as err:  # pylint: disable=broad-except
        raise ClusterError(f"failed to {description}: {err}") from err
