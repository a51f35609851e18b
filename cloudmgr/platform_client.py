"""
The platform client is the long-lived connection to the external platform API
of a system. The coordinator caches one per namespace; this module only knows
how to build one from the system-endpoint secret and how to issue requests
through it.
"""

# Standard
from typing import Dict, List, Optional
import base64
import json

# Third Party
import urllib3

# First Party
import alog

# Local
from . import config
from .constants import HTTP_PREFIX, HTTPS_PREFIX, SYSTEM_ENDPOINT_SECRET_NAME
from .deploy_manager import DeployManagerBase
from .exceptions import ClientError, PlatformError

log = alog.use_channel("PLTFM")

# Secret attributes used to authenticate against keystone
REQUIRED_ATTRIBUTES = [
    "OS_AUTH_URL",
    "OS_USERNAME",
    "OS_PASSWORD",
    "OS_PROJECT_NAME",
]

DEFAULT_DOMAIN = "Default"


class PlatformClient:
    """Authenticated handle onto the platform API of one system. The handle is
    treated as opaque by the coordinator and is never mutated once built.
    """

    def __init__(
        self,
        namespace: str,
        endpoint: str,
        token: str,
        pool: urllib3.PoolManager,
        timeout: float,
    ):
        self.namespace = namespace
        self.endpoint = endpoint.rstrip("/")
        self._token = token
        self._pool = pool
        self._timeout = timeout

    def __repr__(self) -> str:
        return f"PlatformClient(namespace={self.namespace}, endpoint={self.endpoint})"

    def request(self, method: str, path: str, body: Optional[dict] = None) -> dict:
        """Issue a request against the platform API and return the decoded JSON
        body

        Args:
            method:  str
                The HTTP verb
            path:  str
                Path relative to the platform endpoint (e.g. /ihosts/<uuid>)
            body:  Optional[dict]
                JSON payload

        Returns:
            content:  dict
                The decoded response body (empty if the response had none)
        """
        url = f"{self.endpoint}/{path.lstrip('/')}"
        headers = {"X-Auth-Token": self._token, "Accept": "application/json"}
        payload = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            payload = json.dumps(body).encode("utf-8")

        log.debug2("%s %s", method, url)
        try:
            response = self._pool.request(
                method, url, body=payload, headers=headers, timeout=self._timeout
            )
        except urllib3.exceptions.HTTPError as err:
            raise PlatformError(
                f"failed to {method} {path} on platform of namespace "
                f"{self.namespace}: {err}"
            ) from err

        if response.status >= 400:
            raise PlatformError(
                f"failed to {method} {path} on platform of namespace "
                f"{self.namespace}: HTTP {response.status}",
                status=response.status,
            )
        return json.loads(response.data) if response.data else {}

    def get(self, path: str) -> dict:
        return self.request("GET", path)

    def close(self):
        """Release pooled connections"""
        self._pool.clear()


## Factory #####################################################################


def build_platform_client(
    deploy_manager: DeployManagerBase, namespace: str
) -> PlatformClient:
    """Build a platform client for a namespace from the credentials held in
    the system-endpoint secret

    Args:
        deploy_manager:  DeployManagerBase
            Used to read the secret
        namespace:  str
            The namespace of the system

    Returns:
        client:  PlatformClient
            A live, authenticated client

    Raises:
        ClientError if the secret is missing or incomplete, or if keystone
        rejects the credentials or cannot be reached
    """
    attributes = _read_endpoint_secret(deploy_manager, namespace)
    missing = [key for key in REQUIRED_ATTRIBUTES if not attributes.get(key)]
    if missing:
        raise ClientError(
            f"secret {namespace}/{SYSTEM_ENDPOINT_SECRET_NAME} is missing {missing}"
        )

    pool = _make_pool(attributes)
    timeout = float(config.platform.request_timeout)

    last_err = None
    for auth_url in _candidate_auth_urls(attributes["OS_AUTH_URL"]):
        try:
            token, catalog = _authenticate(pool, auth_url, attributes, timeout)
        except urllib3.exceptions.SSLError as err:
            log.info("TLS not enabled at [%s], trying the next scheme", auth_url)
            last_err = err
            continue
        except urllib3.exceptions.HTTPError as err:
            raise ClientError(
                f"failed to reach keystone at {auth_url} for namespace "
                f"{namespace}: {err}"
            ) from err

        endpoint = _find_endpoint(
            catalog,
            service_type=config.platform.service_type,
            interface=attributes.get("OS_INTERFACE") or config.platform.interface,
            region=attributes.get("OS_REGION_NAME"),
        )
        if endpoint is None:
            raise ClientError(
                f"no {config.platform.service_type} endpoint in the service catalog "
                f"for namespace {namespace}"
            )

        log.info("Platform client built for namespace [%s]", namespace)
        return PlatformClient(namespace, endpoint, token, pool, timeout)

    raise ClientError(
        f"failed to reach keystone for namespace {namespace}: {last_err}"
    ) from last_err


## Implementation ##############################################################


def _read_endpoint_secret(
    deploy_manager: DeployManagerBase, namespace: str
) -> Dict[str, str]:
    success, secret = deploy_manager.get_object_current_state(
        kind="Secret",
        name=SYSTEM_ENDPOINT_SECRET_NAME,
        namespace=namespace,
        api_version="v1",
    )
    if not success:
        raise ClientError(
            f"failed to read secret {namespace}/{SYSTEM_ENDPOINT_SECRET_NAME}"
        )
    if secret is None:
        raise ClientError(
            f"secret {namespace}/{SYSTEM_ENDPOINT_SECRET_NAME} does not exist"
        )

    attributes = dict(secret.get("stringData") or {})
    for key, value in (secret.get("data") or {}).items():
        try:
            attributes[key] = base64.b64decode(value).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as err:
            raise ClientError(
                f"secret {namespace}/{SYSTEM_ENDPOINT_SECRET_NAME} has an invalid "
                f"value for {key}"
            ) from err
    return attributes


def _make_pool(attributes: Dict[str, str]) -> urllib3.PoolManager:
    if (attributes.get("OS_INSECURE") or "").lower() == "true":
        return urllib3.PoolManager(cert_reqs="CERT_NONE")
    if ca_cert := attributes.get("OS_CACERT"):
        return urllib3.PoolManager(cert_reqs="CERT_REQUIRED", ca_cert_data=ca_cert)
    return urllib3.PoolManager()


def _candidate_auth_urls(auth_url: str) -> List[str]:
    """An auth URL with an explicit scheme is used as is. Without one, https is
    tried first and plain http is the fallback.
    """
    auth_url = auth_url.rstrip("/")
    if not auth_url.endswith("/v3"):
        auth_url = f"{auth_url}/v3"
    if auth_url.startswith((HTTPS_PREFIX, HTTP_PREFIX)):
        return [auth_url]
    return [HTTPS_PREFIX + auth_url, HTTP_PREFIX + auth_url]


def _authenticate(
    pool: urllib3.PoolManager,
    auth_url: str,
    attributes: Dict[str, str],
    timeout: float,
):
    body = {
        "auth": {
            "identity": {
                "methods": ["password"],
                "password": {
                    "user": {
                        "name": attributes["OS_USERNAME"],
                        "password": attributes["OS_PASSWORD"],
                        "domain": {
                            "name": attributes.get("OS_USER_DOMAIN_NAME")
                            or DEFAULT_DOMAIN
                        },
                    }
                },
            },
            "scope": {
                "project": {
                    "name": attributes["OS_PROJECT_NAME"],
                    "domain": {
                        "name": attributes.get("OS_PROJECT_DOMAIN_NAME")
                        or DEFAULT_DOMAIN
                    },
                }
            },
        }
    }
    response = pool.request(
        "POST",
        f"{auth_url}/auth/tokens",
        body=json.dumps(body).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        timeout=timeout,
        retries=False,
    )
    if response.status >= 400:
        raise ClientError(
            f"keystone at {auth_url} rejected the credentials: HTTP {response.status}"
        )

    token = response.headers.get("X-Subject-Token")
    if not token:
        raise ClientError(f"keystone at {auth_url} did not return a token")

    try:
        catalog = json.loads(response.data)["token"].get("catalog", [])
    except (ValueError, KeyError) as err:
        raise ClientError(f"keystone at {auth_url} returned an invalid token") from err
    return token, catalog


def _find_endpoint(
    catalog: List[dict],
    service_type: str,
    interface: str,
    region: Optional[str],
) -> Optional[str]:
    for service in catalog:
        if service.get("type") != service_type:
            continue
        for endpoint in service.get("endpoints", []):
            if endpoint.get("interface") != interface:
                continue
            if region and endpoint.get("region") not in (None, region):
                continue
            return endpoint.get("url")
    return None
