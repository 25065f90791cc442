"""Tests for per-pod version resolution order and owner-version memoization."""

from kubeversions.core.models import UNKNOWN_VERSION, PodRecord
from kubeversions.core.resolver import WorkloadVersionCache, resolve_pod_version, version_from_labels


class _CountingLookup:
    def __init__(self, labels=None, error=None):
        self.labels = labels or {}
        self.error = error
        self.calls = []

    def __call__(self, kind, name):
        self.calls.append((kind, name))
        if self.error is not None:
            raise self.error
        return self.labels.get((kind, name), {})


def test_pod_label_wins_regardless_of_image_tag():
    pod = PodRecord(
        name="argocd-server-abc",
        owner_kind="ReplicaSet",
        owner_name="argocd-server-5d9",
        label_version="v2.9.3",
        legacy_label_version="2.0.0",
        annotation_version="9.9.9",
        image="quay.io/argoproj/argocd:v1.0.0",
    )
    lookup = _CountingLookup()

    resolved = resolve_pod_version(pod, WorkloadVersionCache(lookup))

    assert resolved.version == "v2.9.3"
    assert resolved.source == "pod-label"
    assert lookup.calls == []


def test_legacy_version_label_then_annotation():
    pod = PodRecord(name="p", legacy_label_version="1.1.0", annotation_version="2.2.0")
    assert resolve_pod_version(pod, None).version == "1.1.0"

    pod = PodRecord(name="p", annotation_version="2.2.0", image="app:3.3.0")
    resolved = resolve_pod_version(pod, None)
    assert resolved.version == "2.2.0"
    assert resolved.source == "pod-annotation"


def test_falls_through_to_owner_labels_before_image():
    pod = PodRecord(name="p", owner_kind="DaemonSet", owner_name="datadog-agent", image="datadog/agent:7.50.1")
    lookup = _CountingLookup({("DaemonSet", "datadog-agent"): {"version": "7.51.0"}})

    resolved = resolve_pod_version(pod, WorkloadVersionCache(lookup))

    assert resolved.version == "7.51.0"
    assert resolved.source == "workload-label"


def test_falls_through_to_image_when_owner_has_no_version():
    pod = PodRecord(name="p", owner_kind="DaemonSet", owner_name="datadog-agent", image="datadog/agent:7.50.1")
    lookup = _CountingLookup({("DaemonSet", "datadog-agent"): {"app": "datadog"}})

    resolved = resolve_pod_version(pod, WorkloadVersionCache(lookup))

    assert resolved.version == "7.50.1"
    assert resolved.source == "image-tag"
    assert lookup.calls == [("DaemonSet", "datadog-agent")]


def test_unknown_sentinel_when_nothing_matches():
    pod = PodRecord(name="p", image="registry/app:main-abc1234")

    resolved = resolve_pod_version(pod, WorkloadVersionCache(_CountingLookup()))

    assert resolved.version == UNKNOWN_VERSION
    assert resolved.source == "none"
    assert not resolved.found


def test_standalone_pod_skips_owner_lookup():
    lookup = _CountingLookup()
    resolve_pod_version(PodRecord(name="standalone", image="app:1.0.0"), WorkloadVersionCache(lookup))
    assert lookup.calls == []


def test_pods_sharing_owner_trigger_single_lookup():
    lookup = _CountingLookup({("ReplicaSet", "komodor-agent-7f9"): {"app.kubernetes.io/version": "0.2.101"}})
    cache = WorkloadVersionCache(lookup)
    pods = [
        PodRecord(name=f"komodor-agent-7f9-{i}", owner_kind="ReplicaSet", owner_name="komodor-agent-7f9")
        for i in range(3)
    ]

    versions = [resolve_pod_version(p, cache).version for p in pods]

    assert versions == ["0.2.101", "0.2.101", "0.2.101"]
    assert lookup.calls == [("ReplicaSet", "komodor-agent-7f9")]
    assert cache.lookups == 1
    assert "ReplicaSet/komodor-agent-7f9" in cache


def test_owner_lookup_failure_is_empty_and_cached():
    lookup = _CountingLookup(error=RuntimeError("forbidden"))
    cache = WorkloadVersionCache(lookup)
    pod = PodRecord(name="p", owner_kind="Deployment", owner_name="web", image="web:v1.0.0")

    first = resolve_pod_version(pod, cache)
    second = resolve_pod_version(pod, cache)

    assert first.version == second.version == "v1.0.0"
    assert len(lookup.calls) == 1


def test_version_from_labels_prefers_recommended_label_and_strips():
    assert version_from_labels({"app.kubernetes.io/version": " 1.0.0 ", "version": "2"}) == "1.0.0"
    assert version_from_labels({"app.kubernetes.io/version": "", "version": "2"}) == "2"
    assert version_from_labels(None) == ""
