import pytest

from tankakit.extract import (
    PrimitiveReachedError,
    check_kubernetes_manifest,
    extract,
)


def _obj(kind, name):
    return {"apiVersion": "v1", "kind": kind, "metadata": {"name": name}}


def test_flat_manifest_at_root():
    m = _obj("Service", "grafana")
    assert extract(m) == {".": m}


def test_deep_nesting():
    ns = _obj("Namespace", "app")
    backend = _obj("Deployment", "grafana")
    frontend = _obj("Deployment", "frontend")
    service = _obj("Service", "frontend")
    data = {
        "app": {
            "namespace": ns,
            "web": {
                "backend": {"server": {"grafana": {"deployment": backend}}},
                "frontend": {
                    "nodejs": {"express": {"deployment": frontend, "service": service}}
                },
            },
        }
    }
    assert extract(data) == {
        ".app.namespace": ns,
        ".app.web.backend.server.grafana.deployment": backend,
        ".app.web.frontend.nodejs.express.deployment": frontend,
        ".app.web.frontend.nodejs.express.service": service,
    }


def test_array_is_flattened():
    first = _obj("ConfigMap", "one")
    second = _obj("ConfigMap", "two")
    result = extract([first, {"nested": [second]}])
    assert len(result) == 2
    assert sorted(result.values(), key=lambda m: m["metadata"]["name"]) == [first, second]
    assert all(path.startswith(".") for path in result)


def test_nil_values_are_skipped():
    ns = _obj("Namespace", "app")
    assert extract({"app": {"namespace": ns, "disabledObject": None}}) == {
        ".app.namespace": ns
    }


def test_private_field_removed():
    m = _obj("Service", "grafana")
    with_private = dict(m, __ksonnet={"checksum": "abc"})
    assert extract(with_private)["."] == m


def test_primitive_error_message():
    data = {"service": {"note": "invalid because apiVersion and kind are missing"}}
    with pytest.raises(PrimitiveReachedError) as info:
        extract(data)
    assert str(info.value) == (
        'found invalid Kubernetes object (at .service): missing attribute "apiVersion"\n'
        "\n"
        "note: invalid because apiVersion and kind are missing\n"
    )


def test_missing_kind_error_message():
    data = {
        "service": {
            "apiVersion": "v1",
            "spec": {
                "ports": [{"port": 80, "protocol": "TCP", "targetPort": 8080}],
                "selector": {"app": "deep"},
            },
        }
    }
    with pytest.raises(PrimitiveReachedError) as info:
        extract(data)
    assert str(info.value) == """found invalid Kubernetes object (at .service): missing attribute "kind"

apiVersion: v1
spec:
    ports:
        - port: 80
          protocol: TCP
          targetPort: 8080
    selector:
        app: deep
"""


def test_bad_kind_error_message():
    data = {
        "deployment": {
            "apiVersion": "apps/v1",
            "kind": 3000,
            "metadata": {"name": "grafana"},
            "spec": {
                "replicas": 1,
                "template": {
                    "containers": [{"image": "grafana/grafana", "name": "grafana"}],
                    "metadata": {"labels": {"app": "grafana"}},
                },
            },
        }
    }
    with pytest.raises(PrimitiveReachedError) as info:
        extract(data)
    assert str(info.value) == """found invalid Kubernetes object (at .deployment): attribute "kind" is not a string, it is a float64

apiVersion: apps/v1
kind: 3000
metadata:
    name: grafana
spec:
    replicas: 1
    template:
        containers:
            - image: grafana/grafana
              name: grafana
        metadata:
            labels:
                app: grafana
"""


def test_innermost_container_is_reported():
    inner = {"c": 1}
    with pytest.raises(PrimitiveReachedError) as info:
        extract({"a": {"b": inner}})
    err = info.value
    assert err.path == ".a.b"
    assert err.key == "c"
    assert err.primitive == 1
    assert err.containing_obj == inner


def test_primitive_at_root():
    with pytest.raises(PrimitiveReachedError) as info:
        extract(5)
    assert info.value.key == ""
    assert info.value.containing_obj is None
    assert str(info.value).startswith("found invalid Kubernetes object (at .): ")


def test_with_containing_obj_keeps_first():
    err = PrimitiveReachedError(".x", "y", 1)
    first = err.with_containing_obj({"y": 1}, ValueError("first"))
    second = first.with_containing_obj({"z": 2}, ValueError("second"))
    assert second.containing_obj == {"y": 1}
    assert str(second.containing_obj_err) == "first"
    assert err.containing_obj is None


def test_check_kubernetes_manifest_valid():
    assert check_kubernetes_manifest(_obj("Service", "a")) is None


@pytest.mark.parametrize(
    "obj, message",
    [
        ({"kind": "Service"}, 'missing attribute "apiVersion"'),
        ({"apiVersion": "v1"}, 'missing attribute "kind"'),
        ({"apiVersion": "v1", "kind": ""}, 'attribute "kind" is empty'),
    ],
)
def test_check_kubernetes_manifest_invalid(obj, message):
    with pytest.raises(ValueError) as info:
        check_kubernetes_manifest(obj)
    assert str(info.value) == message