import pytest

from scanoperator.kube.client import (
    AlreadyExistsError,
    InMemoryClient,
    NotFoundError,
    match_labels,
)


def _pod(name, namespace="default", labels=None):
    return {
        "kind": "Pod",
        "metadata": {"name": name, "namespace": namespace, "labels": labels or {}},
        "spec": {"nodeName": "node-a"},
    }


def test_add_then_get_returns_equal_object():
    client = InMemoryClient()
    pod = _pod("web")
    client.add(pod)
    assert client.get("Pod", "default", "web") == pod


def test_constructor_seeds_objects():
    pod = _pod("web")
    client = InMemoryClient(pod)
    assert client.get("Pod", "default", "web") == pod


def test_get_returns_copy():
    client = InMemoryClient(_pod("web"))
    fetched = client.get("Pod", "default", "web")
    fetched["spec"]["nodeName"] = "changed"
    assert client.get("Pod", "default", "web")["spec"]["nodeName"] == "node-a"


def test_get_missing_raises_not_found():
    client = InMemoryClient()
    with pytest.raises(NotFoundError) as info:
        client.get("Pod", "default", "ghost")
    assert info.value.name == "ghost"
    assert info.value.kind == "Pod"


def test_create_duplicate_raises_already_exists():
    client = InMemoryClient(_pod("web"))
    with pytest.raises(AlreadyExistsError):
        client.create(_pod("web"))


def test_create_then_get():
    client = InMemoryClient()
    pod = _pod("api", "prod")
    client.create(pod)
    assert client.get("Pod", "prod", "api") == pod


def test_update_missing_raises_not_found():
    client = InMemoryClient()
    with pytest.raises(NotFoundError):
        client.update(_pod("web"))


def test_update_replaces_object():
    client = InMemoryClient(_pod("web"))
    changed = _pod("web", labels={"app": "web"})
    client.update(changed)
    assert client.get("Pod", "default", "web") == changed


def test_delete_removes_object():
    client = InMemoryClient(_pod("web"))
    client.delete(_pod("web"))
    with pytest.raises(NotFoundError):
        client.get("Pod", "default", "web")


def test_delete_missing_raises_not_found():
    with pytest.raises(NotFoundError):
        InMemoryClient().delete(_pod("web"))


def test_object_without_name_is_rejected():
    with pytest.raises(ValueError):
        InMemoryClient().add({"kind": "Pod", "metadata": {}})


def test_list_filters_by_kind_namespace_and_labels():
    client = InMemoryClient(
        _pod("a", "default", {"app": "nginx"}),
        _pod("b", "default", {"app": "redis"}),
        _pod("c", "prod", {"app": "nginx"}),
        {"kind": "ConfigMap", "metadata": {"name": "cm", "namespace": "default"}},
    )
    names = [p["metadata"]["name"] for p in client.list("Pod", "default", {"app": "nginx"})]
    assert names == ["a"]
    all_nginx = [p["metadata"]["name"] for p in client.list("Pod", None, {"app": "nginx"})]
    assert all_nginx == ["a", "c"]
    assert len(client.list("Pod")) == 3


def test_match_labels():
    assert match_labels({"app": "nginx", "tier": "web"}, {"app": "nginx"})
    assert not match_labels({"app": "nginx"}, {"app": "redis"})
    assert not match_labels({}, {"app": "nginx"})
    assert match_labels(None, {})
    assert match_labels({"app": "nginx"}, None)


def test_logs_round_trip():
    client = InMemoryClient()
    client.set_logs("default", "web", "main", "hello\n")
    assert client.read_logs("default", "web", "main").read() == "hello\n"


def test_missing_logs_raise_not_found():
    with pytest.raises(NotFoundError):
        InMemoryClient().read_logs("default", "web", "main")