"""Kubernetes lookups used as endpoint sources and convergence checks."""

from kubernetes import client, config as k8s_config
from kubernetes.client.exceptions import ApiException

ROUTE_GROUP = "route.openshift.io"
ROUTE_VERSION = "v1"
CONFIG_GROUP = "config.openshift.io"
CONFIG_VERSION = "v1"


def _load_config() -> None:
    """Load in-cluster or local kubeconfig."""
    try:
        k8s_config.load_incluster_config()
    except k8s_config.ConfigException:
        k8s_config.load_kube_config()


def _get_k8s_client() -> client.CoreV1Api:
    _load_config()
    return client.CoreV1Api()


def _get_custom_client() -> client.CustomObjectsApi:
    _load_config()
    return client.CustomObjectsApi()


def is_not_found(exc: Exception) -> bool:
    """True for API errors meaning the object does not exist (yet)."""
    return isinstance(exc, ApiException) and exc.status == 404


def is_conflict(exc: Exception) -> bool:
    return isinstance(exc, ApiException) and exc.status == 409


# --- Routes ---


def get_route(namespace: str, name: str) -> dict:
    return _get_custom_client().get_namespaced_custom_object(
        ROUTE_GROUP, ROUTE_VERSION, namespace, "routes", name,
    )


def get_route_host(namespace: str, name: str) -> str:
    route = get_route(namespace, name)
    return route.get("spec", {}).get("host", "")


# --- Cluster ingress config ---


def get_ingress_config() -> dict:
    return _get_custom_client().get_cluster_custom_object(
        CONFIG_GROUP, CONFIG_VERSION, "ingresses", "cluster",
    )


def update_ingress_config(ingress: dict) -> dict:
    return _get_custom_client().replace_cluster_custom_object(
        CONFIG_GROUP, CONFIG_VERSION, "ingresses", "cluster", ingress,
    )


# --- Endpoint sources ---


def join_host_port(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def route_host_source(namespace: str, name: str):
    """Endpoint source yielding the admitted host of a route."""

    def list_endpoints() -> list[str]:
        host = get_route_host(namespace, name)
        if not host:
            raise ValueError(f"route {namespace}/{name} has no host yet")
        return [host]

    return list_endpoints


def service_source(namespace: str, name: str, port: int):
    """Endpoint source yielding ``<clusterIP>:<port>`` for a service."""

    def list_endpoints() -> list[str]:
        svc = _get_k8s_client().read_namespaced_service(name, namespace)
        cluster_ip = svc.spec.cluster_ip
        if not cluster_ip or cluster_ip == "None":
            raise ValueError(f"service {namespace}/{name} has no cluster IP")
        return [join_host_port(cluster_ip, port)]

    return list_endpoints


def endpoints_source(namespace: str, name: str, port: int):
    """Endpoint source yielding ``<ip>:<port>`` for every ready address, in API order."""

    def list_endpoints() -> list[str]:
        ep = _get_k8s_client().read_namespaced_endpoints(name, namespace)
        results = []
        for subset in ep.subsets or []:
            for addr in subset.addresses or []:
                results.append(join_host_port(addr.ip, port))
        if not results:
            raise ValueError(f"endpoints {namespace}/{name} have no ready addresses")
        return results

    return list_endpoints
