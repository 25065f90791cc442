"""Kubernetes API client for context discovery and the pod/workload metadata behind version reports (read-only)."""

import logging
import os
import threading
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

import yaml

from kubeversions.core.errors import MissingDependencyError
from kubeversions.core.models import PodRecord, ReportWarning
from kubeversions.core.resolver import LEGACY_VERSION_LABEL, VERSION_LABEL

logger = logging.getLogger(__name__)

# (kubeconfig path, context) -> ApiClient
_api_clients: Dict[Tuple[Optional[str], Optional[str]], Any] = {}
_init_lock = threading.Lock()


@runtime_checkable
class K8sProvider(Protocol):
    def list_contexts(self) -> List[str]: ...

    def check_context(self, context: Optional[str]) -> Optional[ReportWarning]: ...

    def namespace_exists(self, context: Optional[str], namespace: str) -> bool: ...

    def list_pod_records(self, context: Optional[str], namespace: str) -> List[PodRecord]: ...

    def get_workload_labels(self, context: Optional[str], namespace: str, kind: str, name: str) -> Dict[str, Any]: ...


class DefaultK8sProvider:
    def __init__(self, kubeconfig: Optional[str] = None) -> None:
        self.kubeconfig = kubeconfig

    def list_contexts(self) -> List[str]:
        return list_contexts(kubeconfig=self.kubeconfig)

    def check_context(self, context: Optional[str]) -> Optional[ReportWarning]:
        return check_context(context, kubeconfig=self.kubeconfig)

    def namespace_exists(self, context: Optional[str], namespace: str) -> bool:
        return namespace_exists(context, namespace, kubeconfig=self.kubeconfig)

    def list_pod_records(self, context: Optional[str], namespace: str) -> List[PodRecord]:
        return list_pod_records(context, namespace, kubeconfig=self.kubeconfig)

    def get_workload_labels(self, context: Optional[str], namespace: str, kind: str, name: str) -> Dict[str, Any]:
        return get_workload_labels(context, namespace, kind, name, kubeconfig=self.kubeconfig)


def get_k8s_provider(kubeconfig: Optional[str] = None) -> K8sProvider:
    """Seam for swapping provider implementations (tests use in-memory fakes)."""
    return DefaultK8sProvider(kubeconfig=kubeconfig)


def _import_client():
    try:
        from kubernetes import client, config
    except Exception as import_err:
        raise MissingDependencyError(f"Kubernetes client not available: {import_err}")
    return client, config


def _get_api_client(context: Optional[str], kubeconfig: Optional[str] = None) -> Any:
    """
    Return a cached ApiClient bound to one kubeconfig context (None: the current context).

    Clients are built with `new_client_from_config` rather than `load_kube_config`, so
    iterating over contexts never mutates the global default configuration.
    """
    key = (kubeconfig, context)
    if key in _api_clients:
        return _api_clients[key]

    with _init_lock:
        if key in _api_clients:
            return _api_clients[key]
        _client, config = _import_client()
        api_client = config.new_client_from_config(config_file=kubeconfig, context=context)
        _api_clients[key] = api_client
        return api_client


def _core_v1(context: Optional[str], kubeconfig: Optional[str] = None) -> Any:
    client, _config = _import_client()
    return client.CoreV1Api(api_client=_get_api_client(context, kubeconfig))


def _apps_v1(context: Optional[str], kubeconfig: Optional[str] = None) -> Any:
    client, _config = _import_client()
    return client.AppsV1Api(api_client=_get_api_client(context, kubeconfig))


def _batch_v1(context: Optional[str], kubeconfig: Optional[str] = None) -> Any:
    client, _config = _import_client()
    return client.BatchV1Api(api_client=_get_api_client(context, kubeconfig))


def _api_status(e: Exception) -> Optional[int]:
    status = getattr(e, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def _context_name(entry: Any) -> Optional[str]:
    # Merged entries are ConfigNode wrappers around the raw mapping.
    value = getattr(entry, "value", entry)
    if isinstance(value, dict) and value.get("name"):
        return str(value["name"])
    return None


def list_contexts(kubeconfig: Optional[str] = None) -> List[str]:
    """
    Context names from the kubeconfig, in file order.

    Reads the merged kubeconfig (a `KUBECONFIG` path list is honoured, first definition of a name wins)
    without selecting an active context, so a file with no `current-context` still lists its contexts.
    Raises MissingDependencyError when the client is missing or no kubeconfig can be loaded.
    """
    _client, config = _import_client()
    from kubernetes.config.kube_config import KUBE_CONFIG_DEFAULT_LOCATION, KubeConfigMerger

    path = kubeconfig or os.environ.get("KUBECONFIG") or KUBE_CONFIG_DEFAULT_LOCATION
    try:
        merged = KubeConfigMerger(path).config
    except config.ConfigException as e:
        raise MissingDependencyError(f"Cannot load kubeconfig: {e}")
    except yaml.YAMLError as e:
        raise MissingDependencyError(f"Invalid kubeconfig {path}: {e}")
    except OSError as e:
        raise MissingDependencyError(f"Cannot read kubeconfig: {e}")
    if merged is None:
        raise MissingDependencyError(f"No kubeconfig found at {path}")

    data = getattr(merged, "value", None) or {}
    names: List[str] = []
    for entry in data.get("contexts") or []:
        name = _context_name(entry)
        if name:
            names.append(name)
    return names


def check_context(context: Optional[str], kubeconfig: Optional[str] = None) -> Optional[ReportWarning]:
    """
    Probe a context with a cheap `/version` call.

    Returns None when reachable, otherwise a warning (AuthFailure for 401/403, ContextUnreachable
    for anything else). Never raises except for a missing client.
    """
    label = context or "(current context)"
    logger.debug("Checking accessibility of context: %s", label)
    client, _config = _import_client()
    try:
        client.VersionApi(api_client=_get_api_client(context, kubeconfig)).get_code()
    except MissingDependencyError:
        raise
    except Exception as e:
        status = _api_status(e)
        if status in (401, 403):
            logger.warning("Context '%s' rejected credentials (HTTP %s)", label, status)
            return ReportWarning(kind="AuthFailure", message=f"Context '{label}' rejected credentials (HTTP {status})")
        logger.warning("Context '%s' is not accessible: %s", label, e)
        return ReportWarning(kind="ContextUnreachable", message=f"Cannot access context '{label}'")
    logger.debug("Context '%s' is accessible", label)
    return None


def namespace_exists(context: Optional[str], namespace: str, kubeconfig: Optional[str] = None) -> bool:
    """True if the namespace exists. 404 -> False; other API errors raise."""
    try:
        _core_v1(context, kubeconfig).read_namespace(name=namespace)
        return True
    except MissingDependencyError:
        raise
    except Exception as e:
        if _api_status(e) == 404:
            return False
        raise Exception(f"Failed to read namespace {namespace}: {str(e)}")


def _owner_ref(meta: Any) -> Tuple[Optional[str], Optional[str]]:
    refs = getattr(meta, "owner_references", None) or []
    # Prefer the controller ownerRef; fall back to the first one.
    for ref in refs:
        if getattr(ref, "controller", False):
            return getattr(ref, "kind", None), getattr(ref, "name", None)
    if refs:
        return getattr(refs[0], "kind", None), getattr(refs[0], "name", None)
    return None, None


def _pod_to_record(pod: Any) -> Optional[PodRecord]:
    meta = getattr(pod, "metadata", None)
    name = getattr(meta, "name", None)
    if not name:
        return None
    labels = dict(getattr(meta, "labels", None) or {})
    annotations = dict(getattr(meta, "annotations", None) or {})
    containers = getattr(getattr(pod, "spec", None), "containers", None) or []
    image = getattr(containers[0], "image", None) if containers else None
    owner_kind, owner_name = _owner_ref(meta)
    return PodRecord(
        name=name,
        owner_kind=owner_kind,
        owner_name=owner_name,
        label_version=labels.get(VERSION_LABEL),
        legacy_label_version=labels.get(LEGACY_VERSION_LABEL),
        annotation_version=annotations.get(VERSION_LABEL),
        image=image,
    )


def list_pod_records(context: Optional[str], namespace: str, kubeconfig: Optional[str] = None) -> List[PodRecord]:
    """List every pod in a namespace in one call and keep only the version-relevant fields."""
    try:
        pod_list = _core_v1(context, kubeconfig).list_namespaced_pod(namespace=namespace)
    except MissingDependencyError:
        raise
    except Exception as e:
        raise Exception(f"Failed to list pods: {str(e)}")

    records: List[PodRecord] = []
    for pod in pod_list.items or []:
        record = _pod_to_record(pod)
        if record is not None:
            records.append(record)
    return records


def get_workload_labels(
    context: Optional[str], namespace: str, kind: str, name: str, kubeconfig: Optional[str] = None
) -> Dict[str, Any]:
    """
    Best-effort fetch of an owning workload's labels. Never raises; unsupported kinds
    and API failures return {}.
    """
    kind_norm = (kind or "").strip()
    if not kind_norm or not name:
        return {}
    try:
        if kind_norm in ("Deployment", "StatefulSet", "DaemonSet", "ReplicaSet"):
            apps = _apps_v1(context, kubeconfig)
            if kind_norm == "Deployment":
                obj = apps.read_namespaced_deployment(name=name, namespace=namespace)
            elif kind_norm == "StatefulSet":
                obj = apps.read_namespaced_stateful_set(name=name, namespace=namespace)
            elif kind_norm == "DaemonSet":
                obj = apps.read_namespaced_daemon_set(name=name, namespace=namespace)
            else:
                obj = apps.read_namespaced_replica_set(name=name, namespace=namespace)
        elif kind_norm == "Job":
            obj = _batch_v1(context, kubeconfig).read_namespaced_job(name=name, namespace=namespace)
        else:
            logger.debug("No label lookup for owner kind %s (%s)", kind_norm, name)
            return {}
        labels = getattr(getattr(obj, "metadata", None), "labels", None)
        return dict(labels or {})
    except Exception as e:
        logger.debug("Failed to read %s/%s labels in %s: %s", kind_norm, name, namespace, e)
        return {}
