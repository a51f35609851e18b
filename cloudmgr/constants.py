"""
Shared module to hold constant values for the library
"""

# API group and version of the deployment manager resources
GROUP = "starlingx.windriver.com"
VERSION = "v1"
API_VERSION = f"{GROUP}/{VERSION}"

# Resource kinds
KIND_SYSTEM = "System"
KIND_HOST = "Host"
KIND_HOST_PROFILE = "HostProfile"
KIND_PLATFORM_NETWORK = "PlatformNetwork"
KIND_DATA_NETWORK = "DataNetwork"
KIND_PTP_INSTANCE = "PTPInstance"
KIND_PTP_INTERFACE = "PTPInterface"

# Kinds that are woken by the system controller when the platform changes.
# HostProfiles are consumed by Host resources and are not reconciled on their
# own, so they are deliberately not part of this list.
SYSTEM_DEPENDENCIES = [
    KIND_HOST,
    KIND_PLATFORM_NETWORK,
    KIND_DATA_NETWORK,
    KIND_PTP_INSTANCE,
    KIND_PTP_INTERFACE,
]

# Annotation used as a counter to force a re-reconcile of a resource
NOTIFICATION_COUNT_KEY = "deployment-manager/notifications"

# Annotation consumed by other controllers to reconcile again once in sync
RECONCILE_AFTER_INSYNC = "deployment-manager/reconcile-after-insync"

# Well-known name of the secret which holds the system API endpoint attributes
# (e.g. OS_USERNAME, OS_*)
SYSTEM_ENDPOINT_SECRET_NAME = "system-endpoint"

# URL prefixes for the platform endpoint
HTTPS_PREFIX = "https://"
HTTP_PREFIX = "http://"

# Delimiter used for nested dict keys
NESTED_DICT_DELIM = "."
