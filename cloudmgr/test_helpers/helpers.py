"""
This module holds common helper functions for making testing easy
"""

# Standard
from contextlib import contextmanager
from datetime import timedelta
from typing import Callable, Dict, Optional
import base64
import copy
import os
import threading
import time

# First Party
import alog

# Local
from cloudmgr.config import library_config as config_detail_dict
from cloudmgr.constants import API_VERSION, SYSTEM_ENDPOINT_SECRET_NAME
from cloudmgr.exceptions import ClientError
from cloudmgr.monitor import Monitor

log = alog.use_channel("TEST")


def configure_logging():
    alog.configure(
        os.environ.get("LOG_LEVEL", "off"),
        os.environ.get("LOG_FILTERS", ""),
        formatter="json"
        if os.environ.get("LOG_JSON", "").lower() == "true"
        else "pretty",
        thread_id=os.environ.get("LOG_THREAD_ID", "").lower() == "true",
    )


configure_logging()

TEST_NAMESPACE = "test"
SOME_OTHER_NAMESPACE = "somewhere"

# Short poll interval so that monitor tests run quickly
FAST_INTERVAL = timedelta(seconds=0.01)


## Config ######################################################################


@contextmanager
def library_config(**config_overrides):
    """This context manager sets library config values temporarily and reverts
    them on completion
    """
    old_vals = {}
    for key, val in config_overrides.items():
        if key in config_detail_dict:
            old_vals[key] = config_detail_dict[key]
        config_detail_dict[key] = val

    try:
        yield
    finally:
        for key in config_overrides:
            if key in old_vals:
                config_detail_dict[key] = old_vals[key]
            else:
                del config_detail_dict[key]


## Resources ###################################################################


def setup_resource(
    kind="Host",
    name="controller-0",
    namespace=TEST_NAMESPACE,
    api_version=API_VERSION,
    annotations=None,
    **kwargs,
) -> dict:
    resource = copy.deepcopy(kwargs)
    resource.setdefault("apiVersion", api_version)
    resource.setdefault("kind", kind)
    metadata = resource.setdefault("metadata", {})
    metadata.setdefault("name", name)
    metadata.setdefault("namespace", namespace)
    if annotations is not None:
        metadata["annotations"] = dict(annotations)
    return resource


def setup_endpoint_secret(namespace=TEST_NAMESPACE, **attributes) -> dict:
    """Make a system-endpoint secret holding the given OS_* attributes"""
    attributes = {
        "OS_AUTH_URL": "http://keystone.test:5000/v3",
        "OS_USERNAME": "admin",
        "OS_PASSWORD": "secret",
        "OS_PROJECT_NAME": "admin",
        "OS_REGION_NAME": "RegionOne",
        **attributes,
    }
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"name": SYSTEM_ENDPOINT_SECRET_NAME, "namespace": namespace},
        "data": {
            key: base64.b64encode(value.encode("utf-8")).decode("utf-8")
            for key, value in attributes.items()
        },
    }


def get_annotation(deploy_manager, resource: dict, key: str) -> Optional[str]:
    _, current = deploy_manager.get_object_current_state(
        kind=resource["kind"],
        name=resource["metadata"]["name"],
        namespace=resource["metadata"]["namespace"],
        api_version=resource["apiVersion"],
    )
    return (current["metadata"].get("annotations") or {}).get(key)


## Platform clients ############################################################


class FakePlatformClient:
    """Stand-in for PlatformClient serving canned host records"""

    def __init__(self, namespace: str, hosts: Optional[Dict[str, dict]] = None):
        self.namespace = namespace
        self.hosts = hosts if hosts is not None else {}
        self.closed = False

    def get(self, path: str) -> dict:
        return copy.deepcopy(self.hosts[path.rsplit("/", 1)[-1]])

    def close(self):
        self.closed = True


class FakeClientFactory:
    """Client factory that records its calls and fails on demand"""

    def __init__(self, hosts: Optional[Dict[str, dict]] = None):
        self.hosts = hosts if hosts is not None else {}
        self.fail = False
        self.calls = []

    def __call__(self, deploy_manager, namespace: str) -> FakePlatformClient:
        self.calls.append(namespace)
        if self.fail:
            raise ClientError(f"simulated transport error for {namespace}")
        return FakePlatformClient(namespace, self.hosts)


## Monitors ####################################################################


class FlagMonitor(Monitor):
    """Monitor whose condition is a settable flag. It counts its checks and
    records whether it released its resources.
    """

    def __init__(self, resource: dict, interval: timedelta = FAST_INTERVAL):
        super().__init__(resource, interval)
        self.ready = threading.Event()
        self.checks = 0
        self.released = threading.Event()

    def check(self, manager) -> bool:
        self.checks += 1
        return self.ready.is_set()

    def release(self):
        self.released.set()


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll a predicate until it holds or the timeout expires"""
    end_time = time.time() + timeout
    while time.time() < end_time:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()
