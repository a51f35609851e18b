"""
This defines the base class for all DeployManager types.
"""

# Standard
from typing import List, Optional, Tuple
import abc


class DeployManagerBase(abc.ABC):
    """
    Base class for deploy managers which are responsible for reading and
    writing resources in the cluster object store
    """

    @abc.abstractmethod
    def get_object_current_state(
        self,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> Tuple[bool, Optional[dict]]:
        """Fetch the current state of a given object by name

        Args:
            kind:  str
                The kind of the object to fetch
            name:  str
                The full name of the object to fetch
            namespace:  str
                The namespace to search for the object
            api_version:  str
                The api_version of the resource kind to fetch

        Returns:
            success:  bool
                Whether or not the state fetch operation succeeded
            current_state:  dict or None
                The dict representation of the current object's configuration,
                or None if not present
        """

    @abc.abstractmethod
    def filter_objects_current_state(
        self,
        kind: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> Tuple[bool, List[dict]]:
        """List every object of the given kind in the namespace

        Args:
            kind:  str
                The kind of the objects to fetch
            namespace:  str
                The namespace to search for the objects
            api_version:  str
                The api_version of the resource kind to fetch

        Returns:
            success:  bool
                Whether or not the list operation succeeded
            current_state:  List[dict]
                A list of dict representations for the objects, or an empty
                list if none exist
        """

    @abc.abstractmethod
    def update_object_current_state(
        self, resource: dict
    ) -> Tuple[bool, Optional[dict]]:
        """Replace an existing object with the given content. The update is
        rejected if the object's metadata.resourceVersion is stale.

        Args:
            resource:  dict
                The full object to write back, as previously read and then
                modified by the caller

        Returns:
            success:  bool
                Whether or not the update was accepted
            current_state:  dict or None
                The object as persisted after the update
        """
