"""
The PlatformManager is the coordination layer shared by every controller of
the operator. It owns the per-namespace platform client cache and readiness
state, the registry of running monitors, and exposes the notification cascade
used to wake controllers.

Exactly one PlatformManager is constructed when the operator starts and is
handed to every controller.
"""

# Standard
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Union
import threading

# First Party
import alog

# Local
from . import config, notifications
from .deploy_manager import (
    DeployManagerBase,
    DryRunDeployManager,
    OpenshiftDeployManager,
)
from .exceptions import WaitForMonitor
from .monitor import Monitor, build_monitor_key
from .platform_client import PlatformClient, build_platform_client

log = alog.use_channel("CLDMGR")

# Signature of the factory used to build platform clients
CLIENT_FACTORY_TYPE = Callable[[DeployManagerBase, str], PlatformClient]


class SystemType(Enum):
    UNKNOWN = ""
    ALL_IN_ONE = "all-in-one"
    STANDARD = "standard"


class SystemMode(Enum):
    SIMPLEX = "simplex"
    DUPLEX = "duplex"


@dataclass
class SystemNamespace:
    """Cached state of the system that lives in a namespace"""

    client: Optional[PlatformClient] = None
    ready: bool = False
    system_type: SystemType = SystemType.UNKNOWN


class PlatformManager:
    """Coordinates cross-cutting state between controllers. All registry reads
    and writes happen under a single lock; network calls never do.
    """

    def __init__(
        self,
        deploy_manager: DeployManagerBase,
        client_factory: Optional[CLIENT_FACTORY_TYPE] = None,
    ):
        """
        Args:
            deploy_manager:  DeployManagerBase
                Access to the cluster object store
            client_factory:  Optional[CLIENT_FACTORY_TYPE]
                Builds a platform client for a namespace. Defaults to
                build_platform_client which reads the system-endpoint secret.
        """
        self._deploy_manager = deploy_manager
        self._client_factory = client_factory or build_platform_client
        self._lock = threading.Lock()
        self._systems: Dict[str, SystemNamespace] = {}
        self._monitors: Dict[str, Monitor] = {}

    @classmethod
    def from_config(cls) -> "PlatformManager":
        """Construct the manager with the deploy manager selected by
        config.dry_run
        """
        if config.dry_run:
            log.info("Running with the dry run deploy manager")
            return cls(DryRunDeployManager())
        return cls(OpenshiftDeployManager())

    @property
    def deploy_manager(self) -> DeployManagerBase:
        """The client onto the cluster object store"""
        return self._deploy_manager

    ## Platform clients ########################################################

    def get_platform_client(self, namespace: str) -> Optional[PlatformClient]:
        """Get the cached platform client of a namespace, or None if it has not
        been built or has been reset
        """
        with self._lock:
            system = self._systems.get(namespace)
            return system.client if system else None

    def build_platform_client(self, namespace: str) -> PlatformClient:
        """Build a new platform client for a namespace and cache it in place of
        any previous one. The registry is left untouched if the build fails.

        Raises:
            ClientError if the client could not be built
        """
        client = self._client_factory(self._deploy_manager, namespace)

        with self._lock:
            system = self._systems.setdefault(namespace, SystemNamespace())
            previous, system.client = system.client, client

        if previous is not None and previous is not client:
            previous.close()
        log.debug("Platform client cached for namespace [%s]", namespace)
        return client

    def reset_platform_client(self, namespace: str):
        """Drop the cached platform client of a namespace and ask the system
        controller, which is the sole owner of client creation, to rebuild it.
        Resetting a namespace without a client is a no-op.
        """
        with self._lock:
            system = self._systems.get(namespace)
            if system is None or system.client is None:
                log.debug2("Platform client of [%s] already reset", namespace)
                return
            previous, system.client = system.client, None

        previous.close()
        log.info("Platform client of namespace [%s] has been reset", namespace)
        self.notify_system_controller(namespace)

    ## System state ############################################################

    def set_system_ready(self, namespace: str, value: bool):
        """Set whether the system of a namespace is ready for all controllers to
        reconcile their resources
        """
        with self._lock:
            self._systems.setdefault(namespace, SystemNamespace()).ready = value

    def get_system_ready(self, namespace: str) -> bool:
        with self._lock:
            system = self._systems.get(namespace)
            return system.ready if system else False

    def set_system_type(self, namespace: str, value: SystemType):
        with self._lock:
            system = self._systems.setdefault(namespace, SystemNamespace())
            if system.system_type == value:
                return
            system.system_type = value
        log.info("System type of [%s] has been set to [%s]", namespace, value.value)

    def get_system_type(self, namespace: str) -> SystemType:
        with self._lock:
            system = self._systems.get(namespace)
            return system.system_type if system else SystemType.UNKNOWN

    ## Monitors ################################################################

    def start_monitor(self, monitor: Monitor, message: str) -> WaitForMonitor:
        """Register and start a monitor, stopping any monitor previously
        registered under the same key. The returned signal must be propagated
        as the result of the reconcile so that it is paused rather than
        requeued.

        Args:
            monitor:  Monitor
                The monitor to run
            message:  str
                Human readable reason for the pause

        Returns:
            signal:  WaitForMonitor
                The pause signal carrying the message
        """
        with self._lock:
            previous = self._monitors.get(monitor.key)
            self._monitors[monitor.key] = monitor

        if previous is not None and previous is not monitor:
            log.debug("Replacing monitor [%s]", monitor.key)
            previous.stop()

        # A concurrent start may have replaced this monitor while the previous
        # one was stopping. Only the registered monitor may run.
        with self._lock:
            if self._monitors.get(monitor.key) is monitor:
                log.debug2("Starting monitor [%s]", monitor.key)
                monitor.start(self)
            else:
                log.debug("Monitor [%s] superseded before start", monitor.key)

        return WaitForMonitor(message)

    def cancel_monitor(self, key_or_resource: Union[str, dict]):
        """Stop and deregister the monitor registered under a key (or the key of
        a resource). No-op if there is none.
        """
        key = self._monitor_key(key_or_resource)
        with self._lock:
            monitor = self._monitors.pop(key, None)

        if monitor is None:
            log.debug3("No monitor registered for [%s]", key)
            return

        # Never join a monitor thread while holding the registry lock
        log.debug2("Stopping monitor [%s]", key)
        monitor.stop()

    def get_monitor(self, key_or_resource: Union[str, dict]) -> Optional[Monitor]:
        with self._lock:
            return self._monitors.get(self._monitor_key(key_or_resource))

    def release_monitor(self, monitor: Monitor):
        """Deregister a monitor that has finished on its own. The entry is only
        removed if it still refers to this monitor.
        """
        with self._lock:
            if self._monitors.get(monitor.key) is monitor:
                del self._monitors[monitor.key]
                log.debug2("Released monitor [%s]", monitor.key)

    ## Notifications ###########################################################

    def notify_resource(self, resource: dict):
        notifications.notify_resource(self._deploy_manager, resource)

    def notify_system_dependencies(self, namespace: str):
        notifications.notify_system_dependencies(self._deploy_manager, namespace)

    def notify_system_controller(self, namespace: str):
        notifications.notify_system_controller(self._deploy_manager, namespace)

    ## Implementation ##########################################################

    @staticmethod
    def _monitor_key(key_or_resource: Union[str, dict]) -> str:
        if isinstance(key_or_resource, str):
            return key_or_resource
        return build_monitor_key(key_or_resource)
