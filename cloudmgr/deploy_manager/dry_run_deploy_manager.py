"""
The DryRunDeployManager implements the DeployManager interface but does not
actually interact with the cluster and instead holds the state of the cluster in
a local map.
"""

# Standard
from datetime import datetime
from threading import RLock
from typing import List, Optional
import copy
import itertools
import uuid

# First Party
import alog

# Local
from ..utils import get_resource_identity
from .base import DeployManagerBase

log = alog.use_channel("DRY-RUN")


class DryRunDeployManager(DeployManagerBase):
    """
    Deploy manager which keeps the cluster in memory!
    """

    def __init__(self, resources=None, strict_resource_version=True):
        """Construct with an optional set of resources already present

        Args:
            resources:  Optional[List[dict]]
                Objects to seed the in-memory cluster with
            strict_resource_version:  bool
                If true, updates carrying a resourceVersion that does not match
                the stored object are rejected like a 409 Conflict
        """
        self.strict_resource_version = strict_resource_version
        self._lock = RLock()
        self._cluster_content = {}
        self._versions = itertools.count(1)
        for resource in resources or []:
            self.create_object(resource)

    ## Interface ###############################################################

    def get_object_current_state(self, kind, name, namespace=None, api_version=None):
        log.debug2(
            "DRY RUN get_object_current_state of [%s/%s] in [%s]", kind, name, namespace
        )
        with self._lock:
            matches = [
                entries[name]
                for api_ver, entries in self._kind_entries(namespace, kind).items()
                if name in entries and api_version in (None, api_ver)
            ]
            log.debug3(
                "Found %d matches for [%s/%s] in %s",
                len(matches),
                kind,
                name,
                namespace,
            )
            if len(matches) == 1:
                return True, copy.deepcopy(matches[0])
        return True, None

    def filter_objects_current_state(self, kind, namespace=None, api_version=None):
        log.debug2(
            "DRY RUN filter_objects_current_state of [%s] in [%s]", kind, namespace
        )
        with self._lock:
            return True, [
                copy.deepcopy(resource)
                for api_ver, entries in self._kind_entries(namespace, kind).items()
                if api_version in (None, api_ver)
                for resource in entries.values()
            ]

    def update_object_current_state(self, resource):
        api_version, kind, namespace, name = get_resource_identity(resource)
        log.debug2("DRY RUN update [%s/%s/%s/%s]", namespace, kind, api_version, name)
        with self._lock:
            entries = self._kind_entries(namespace, kind).get(api_version, {})
            if name not in entries:
                log.warning("Unable to update [%s/%s]: not found", kind, name)
                return False, None

            current_version = entries[name]["metadata"].get("resourceVersion")
            requested_version = resource.get("metadata", {}).get("resourceVersion")
            if (
                self.strict_resource_version
                and requested_version
                and requested_version != current_version
            ):
                log.warning(
                    "Unable to update [%s/%s]: resourceVersion is out of date",
                    kind,
                    name,
                )
                return False, None

            updated = copy.deepcopy(resource)
            updated["metadata"]["uid"] = entries[name]["metadata"].get("uid")
            updated["metadata"]["creationTimestamp"] = entries[name]["metadata"].get(
                "creationTimestamp"
            )
            updated["metadata"]["resourceVersion"] = self._next_version()
            entries[name] = updated
            return True, copy.deepcopy(updated)

    ## Dry Run Helpers #########################################################

    def create_object(self, resource: dict) -> dict:
        """Add an object to the in-memory cluster, replacing any existing object
        with the same identity
        """
        api_version, kind, namespace, name = get_resource_identity(resource)
        assert None not in [kind, name], "Cannot create resource without kind or name"
        created = copy.deepcopy(resource)
        metadata = created.setdefault("metadata", {})
        metadata.setdefault("uid", str(uuid.uuid4()))
        metadata.setdefault("creationTimestamp", datetime.now().isoformat())
        with self._lock:
            metadata["resourceVersion"] = self._next_version()
            self._cluster_content.setdefault(namespace, {}).setdefault(
                kind, {}
            ).setdefault(api_version, {})[name] = created
        return copy.deepcopy(created)

    def list_all_objects(self) -> List[dict]:
        """Get a copy of every object in the in-memory cluster"""
        with self._lock:
            return [
                copy.deepcopy(resource)
                for kinds in self._cluster_content.values()
                for versions in kinds.values()
                for entries in versions.values()
                for resource in entries.values()
            ]

    ## Implementation ##########################################################

    def _kind_entries(self, namespace: Optional[str], kind: str) -> dict:
        return self._cluster_content.get(namespace, {}).get(kind, {})

    def _next_version(self) -> str:
        return str(next(self._versions)).zfill(5)
