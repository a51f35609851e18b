"""
This DeployManager is responsible for delegating cluster operations to the
openshift library. It is the one that will be used when the operator is running
in the cluster or outside the cluster making live changes.
"""

# Standard
from typing import List, Optional, Tuple

# Third Party
from openshift.dynamic import DynamicClient
from openshift.dynamic.exceptions import (
    ConflictError,
    DynamicApiError,
    ForbiddenError,
    NotFoundError,
    ResourceNotFoundError,
    ResourceNotUniqueError,
)
from openshift.dynamic.resource import Resource
import kubernetes

# First Party
import alog

# Local
from ..utils import get_resource_identity
from .base import DeployManagerBase

log = alog.use_channel("OSFTD")

# Field manager recorded on every write made by this library
FIELD_MANAGER = "cloudmgr"


class OpenshiftDeployManager(DeployManagerBase):
    """This DeployManager uses the openshift DynamicClient to interact with the
    cluster
    """

    def __init__(self, client: Optional[DynamicClient] = None):
        """
        Args:
            client:  Optional[DynamicClient]
                A preconfigured client. If not given, one is created lazily from
                the in-cluster config or the local kubeconfig.
        """
        self._client = client

    @property
    def client(self) -> DynamicClient:
        """Lazy property access to the client"""
        if self._client is None:
            self._client = self._setup_client()
        return self._client

    def get_object_current_state(
        self,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> Tuple[bool, Optional[dict]]:
        resources = self._get_resource_handle(kind, api_version)
        if not resources:
            return True, None

        try:
            resource = resources.get(name=name, namespace=namespace)
        except ForbiddenError:
            log.debug(
                "Fetching objects of kind [%s] forbidden in namespace [%s]",
                kind,
                namespace,
            )
            return False, None
        except NotFoundError:
            log.debug(
                "No object named [%s/%s] found in namespace [%s]", kind, name, namespace
            )
            return True, None
        except DynamicApiError as err:
            log.warning("Failed to fetch [%s/%s]: %s", kind, name, err.summary())
            return False, None

        return True, resource.to_dict()

    def filter_objects_current_state(
        self,
        kind: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> Tuple[bool, List[dict]]:
        resources = self._get_resource_handle(kind, api_version)
        if not resources:
            return True, []

        try:
            list_obj = resources.get(namespace=namespace)
        except ForbiddenError:
            log.debug(
                "Fetching objects of kind [%s] forbidden in namespace [%s]",
                kind,
                namespace,
            )
            return False, []
        except NotFoundError:
            log.debug(
                "No objects of kind [%s] found in namespace [%s]", kind, namespace
            )
            return True, []
        except DynamicApiError as err:
            log.warning("Failed to list [%s]: %s", kind, err.summary())
            return False, []

        return True, list_obj.to_dict().get("items", [])

    def update_object_current_state(
        self, resource: dict
    ) -> Tuple[bool, Optional[dict]]:
        api_version, kind, namespace, name = get_resource_identity(resource)
        assert None not in [kind, name], "Cannot update resource without kind or name"

        resources = self._get_resource_handle(kind, api_version)
        if not resources:
            return False, None

        log.debug2(
            "Attempting to put [%s/%s/%s] in %s", api_version, kind, name, namespace
        )
        try:
            result = resources.replace(
                resource,
                name=name,
                namespace=namespace,
                field_manager=FIELD_MANAGER,
            )
        except ConflictError:
            log.debug(
                "Update of [%s/%s] rejected with a stale resourceVersion", kind, name
            )
            return False, None
        except DynamicApiError as err:
            log.warning("Failed to update [%s/%s]: %s", kind, name, err.summary())
            return False, None

        return True, result.to_dict()

    ## Implementation Helpers ##################################################

    @staticmethod
    def _setup_client() -> DynamicClient:
        """Create a DynamicClient that will work based on where the operator is
        running
        """
        try:
            log.debug2("Running with in-cluster config")
            kube_config = kubernetes.client.Configuration()
            kubernetes.config.load_incluster_config(client_configuration=kube_config)
            return DynamicClient(kubernetes.client.ApiClient(kube_config))

        except kubernetes.config.ConfigException:
            log.debug2("Running with out-of-cluster config")
            return DynamicClient(kubernetes.config.new_client_from_config())

    def _get_resource_handle(
        self, kind: str, api_version: Optional[str]
    ) -> Optional[Resource]:
        """Get the openshift resource handle for a specified kind and api_version"""
        try:
            return self.client.resources.get(kind=kind, api_version=api_version)
        except (ResourceNotFoundError, ResourceNotUniqueError):
            log.debug(
                "No resource handle for kind [%s] or multiple handles matching request",
                kind,
            )
        return None
