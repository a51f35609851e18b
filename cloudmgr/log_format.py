"""
Custom logging formats that contain more detailed cloudmgr logs
"""

# First Party
from alog import AlogJsonFormatter


class CloudManagerJsonFormatter(AlogJsonFormatter):
    """Custom Log Format that extends AlogJsonFormatter to add thread
    information and the identity of the resource being handled. Callers pass
    the resource with `extra={"resource": manifest}`.
    """

    _FIELDS_TO_PRINT = AlogJsonFormatter._FIELDS_TO_PRINT + [
        "thread",
        "threadName",
        "kind",
        "apiVersion",
        "namespace",
        "resourceName",
    ]

    def format(self, record):
        if resource := getattr(record, "resource", None):
            metadata = resource.get("metadata", {})
            record.kind = resource.get("kind")
            record.apiVersion = resource.get("apiVersion")
            record.namespace = metadata.get("namespace")
            record.resourceName = metadata.get("name")

        return super().format(record)
