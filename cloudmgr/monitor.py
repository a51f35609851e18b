"""
A Monitor is a cancellable background watcher. A controller that has to wait
for an asynchronous condition (e.g. a host reaching a target state) starts a
monitor through the coordinator and pauses its reconcile. The monitor polls
its condition and, once satisfied, notifies the owning resource so that it is
reconciled again, then deregisters itself.
"""

# Standard
from datetime import timedelta
from enum import Enum
from typing import Callable, Optional
import abc
import threading

# First Party
import alog

# Local
from . import config
from .exceptions import assert_config
from .utils import get_resource_identity, parse_time_delta, split_api_version

log = alog.use_channel("MONTR")

# Forward declaration of the coordinator
MANAGER_TYPE = "PlatformManager"


def build_monitor_key(resource: dict) -> str:
    """Build the key of the monitor owned by a resource from its group,
    version, kind, namespace and name
    """
    api_version, kind, namespace, name = get_resource_identity(resource)
    group, version = split_api_version(api_version)
    return "/".join([group, version, kind or "", namespace or "", name or ""])


class MonitorState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Monitor(abc.ABC):
    """Base class for all monitors. Children implement check() which is called
    once per interval on the monitor's own thread.
    """

    def __init__(self, resource: dict, interval: Optional[timedelta] = None):
        """
        Args:
            resource:  dict
                The resource that owns the monitor and is notified when the
                condition is met
            interval:  Optional[timedelta]
                Time between checks. Defaults to config.monitor.poll_interval
        """
        api_version, kind, namespace, name = get_resource_identity(resource)
        self.resource = {
            "apiVersion": api_version,
            "kind": kind,
            "metadata": {"name": name, "namespace": namespace},
        }
        self.key = build_monitor_key(resource)
        if interval is None:
            interval = parse_time_delta(config.monitor.poll_interval)
        assert_config(interval is not None, "Invalid monitor poll interval")
        self.interval = interval

        self._state = MonitorState.IDLE
        self._state_lock = threading.Lock()
        self._shutdown = None
        self._thread = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.key}, {self._state.value})"

    ## Abstract Interface ######################################################

    @abc.abstractmethod
    def check(self, manager: MANAGER_TYPE) -> bool:
        """Return True once the awaited condition has been met"""

    def release(self):
        """Release any polling resources held by the monitor. Called on the
        monitor thread when it exits.
        """

    ## Lifecycle ###############################################################

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def namespace(self) -> Optional[str]:
        return self.resource["metadata"]["namespace"]

    def is_running(self) -> bool:
        return self._state == MonitorState.RUNNING

    def start(self, manager: MANAGER_TYPE):
        """Launch the monitor thread. A stopped monitor may be started again
        with a fresh cancellation event.
        """
        with self._state_lock:
            if self._state == MonitorState.RUNNING:
                log.debug2("Monitor [%s] already running", self.key)
                return
            self._shutdown = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(manager, self._shutdown),
                name=f"monitor:{self.key}",
                daemon=True,
            )
            self._state = MonitorState.RUNNING
            self._thread.start()
        log.debug("Started monitor [%s]", self.key)

    def stop(self):
        """Signal the monitor thread to exit and wait for it. Stopping a monitor
        that is not running is a no-op.
        """
        with self._state_lock:
            if self._state != MonitorState.RUNNING:
                return
            self._state = MonitorState.STOPPED
            self._shutdown.set()
            thread = self._thread

        log.debug("Stopped monitor [%s]", self.key)
        if thread is not threading.current_thread():
            thread.join(timeout=config.monitor.stop_timeout)
            if thread.is_alive():
                log.warning("Monitor thread [%s] did not exit in time", thread.name)

    ## Implementation ##########################################################

    def _run(self, manager: MANAGER_TYPE, shutdown: threading.Event):
        try:
            while not shutdown.wait(self.interval.total_seconds()):
                if not self._check(manager):
                    continue

                # stop() cannot complete while a notification is in flight
                with self._state_lock:
                    if shutdown.is_set():
                        return
                    try:
                        manager.notify_resource(self.resource)
                    except Exception as err:  # pylint: disable=broad-except
                        log.warning(
                            "Monitor [%s] failed to notify its resource: %s",
                            self.key,
                            err,
                        )
                        continue
                    self._state = MonitorState.STOPPED
                    shutdown.set()

                log.info("Monitor [%s] condition met", self.key)
                manager.release_monitor(self)
                return
        finally:
            self.release()

    def _check(self, manager: MANAGER_TYPE) -> bool:
        try:
            return bool(self.check(manager))
        except Exception as err:  # pylint: disable=broad-except
            log.warning("Monitor [%s] check failed: %s", self.key, err, exc_info=True)
            return False


## Monitors ####################################################################


class ConditionMonitor(Monitor):
    """Monitor that waits on an arbitrary predicate of the coordinator"""

    def __init__(
        self,
        resource: dict,
        condition: Callable[[MANAGER_TYPE], bool],
        interval: Optional[timedelta] = None,
    ):
        super().__init__(resource, interval)
        self._condition = condition

    def check(self, manager: MANAGER_TYPE) -> bool:
        return self._condition(manager)


class HostStateMonitor(Monitor):
    """Monitor that waits for a platform host to reach a target combination of
    administrative, operational and availability states. States left as None
    are not compared.
    """

    def __init__(
        self,
        resource: dict,
        host_id: str,
        administrative: Optional[str] = None,
        operational: Optional[str] = None,
        availability: Optional[str] = None,
        interval: Optional[timedelta] = None,
    ):
        super().__init__(resource, interval)
        self.host_id = host_id
        self.target = {
            key: value
            for key, value in {
                "administrative": administrative,
                "operational": operational,
                "availability": availability,
            }.items()
            if value is not None
        }

    def check(self, manager: MANAGER_TYPE) -> bool:
        client = manager.get_platform_client(self.namespace)
        if client is None:
            log.debug2("No platform client for [%s] yet", self.namespace)
            return False

        host = client.get(f"/ihosts/{self.host_id}")
        current = {key: host.get(key) for key in self.target}
        log.debug3(
            "Host [%s] state %s, waiting for %s", self.host_id, current, self.target
        )
        return current == self.target
