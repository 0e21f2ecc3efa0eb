"""DynamicClusterGateway 测试：DynamicClient 用 MagicMock 替换"""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import urllib3
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import ResourceNotFoundError, ResourceNotUniqueError

from devops.core.errors import NotFoundError, UpstreamError
from devops.k8s import gateway as gateway_module
from devops.k8s.gateway import DynamicClusterGateway, ResourceMapping, UnknownKindError, build_gateway

DEPLOYMENTS = ResourceMapping("apps/v1", "Deployment", "deployments", True)
BODY = {"apiVersion": "apps/v1", "kind": "Deployment", "metadata": {"name": "web", "namespace": "dev"}}


def discovered(group, version, name, namespaced=True, preferred=True):
    return SimpleNamespace(
        group=group,
        group_version=f"{group}/{version}" if group else version,
        name=name,
        namespaced=namespaced,
        preferred=preferred,
    )


@pytest.fixture
def dyn(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(gateway_module.dynamic, "DynamicClient", MagicMock(return_value=client))
    return client


@pytest.fixture
def gw(dyn):
    return DynamicClusterGateway(MagicMock(), field_manager="devops-console", request_timeout=7)


class TestApply:

    def test_server_side_apply_forces_conflicts(self, gw, dyn):
        dyn.server_side_apply.return_value.to_dict.return_value = {"metadata": {"uid": "u1"}}

        result = gw.apply(DEPLOYMENTS, BODY, namespace="dev")

        assert result == {"metadata": {"uid": "u1"}}
        dyn.resources.get.assert_called_once_with(api_version="apps/v1", kind="Deployment")
        dyn.server_side_apply.assert_called_once_with(
            dyn.resources.get.return_value,
            body=BODY,
            name="web",
            namespace="dev",
            force_conflicts=True,
            field_manager="devops-console",
            _request_timeout=7,
        )

    def test_dry_run_is_all(self, gw, dyn):
        gw.apply(DEPLOYMENTS, BODY, namespace="dev", dry_run=True)
        assert dyn.server_side_apply.call_args.kwargs["dry_run"] == "All"

    def test_api_error_becomes_upstream_error(self, gw, dyn):
        dyn.server_side_apply.side_effect = ApiException(status=409, reason="Conflict")

        with pytest.raises(UpstreamError) as exc:
            gw.apply(DEPLOYMENTS, BODY, namespace="dev")
        assert "409 Conflict" in exc.value.message

    def test_connection_error_becomes_upstream_error(self, gw, dyn):
        dyn.server_side_apply.side_effect = urllib3.exceptions.HTTPError("connection refused")

        with pytest.raises(UpstreamError):
            gw.apply(DEPLOYMENTS, BODY, namespace="dev")

    def test_discovery_failure_on_connect(self, monkeypatch):
        monkeypatch.setattr(
            gateway_module.dynamic,
            "DynamicClient",
            MagicMock(side_effect=urllib3.exceptions.HTTPError("connection refused")),
        )
        gw = DynamicClusterGateway(MagicMock(), field_manager="devops-console", request_timeout=7)

        with pytest.raises(UpstreamError):
            gw.apply(DEPLOYMENTS, BODY, namespace="dev")


class TestGet:

    def test_get_passes_timeout(self, gw, dyn):
        dyn.get.return_value.to_dict.return_value = BODY

        assert gw.get(DEPLOYMENTS, "web", namespace="dev") == BODY
        dyn.get.assert_called_once_with(
            dyn.resources.get.return_value, name="web", namespace="dev", _request_timeout=7
        )

    def test_missing_object_is_not_found(self, gw, dyn):
        dyn.get.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(NotFoundError):
            gw.get(DEPLOYMENTS, "web", namespace="dev")

    def test_other_api_errors_are_upstream(self, gw, dyn):
        dyn.get.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(UpstreamError) as exc:
            gw.get(DEPLOYMENTS, "web", namespace="dev")
        assert "403" in exc.value.message


class TestResolve:

    def test_resolve(self, gw, dyn):
        dyn.resources.get.return_value = discovered("", "v1", "namespaces", namespaced=False)

        assert gw.resolve("v1", "Namespace") == ResourceMapping("v1", "Namespace", "namespaces", False)

    def test_unknown_kind(self, gw, dyn):
        dyn.resources.get.side_effect = ResourceNotFoundError("No matches found")

        with pytest.raises(UnknownKindError):
            gw.resolve("example.com/v1", "Widget")

    def test_ambiguous_kind(self, gw, dyn):
        dyn.resources.get.side_effect = ResourceNotUniqueError("Multiple matches found")

        with pytest.raises(UnknownKindError):
            gw.resolve("v1", "Widget")

    def test_kind_only_uses_preferred_version(self, gw, dyn):
        dyn.resources.search.return_value = [
            discovered("autoscaling", "v1", "horizontalpodautoscalers", preferred=False),
            discovered("autoscaling", "v2", "horizontalpodautoscalers"),
        ]

        mapping = gw.resolve_kind("HorizontalPodAutoscaler")

        assert mapping.api_version == "autoscaling/v2"
        dyn.resources.search.assert_called_once_with(kind="HorizontalPodAutoscaler")

    def test_kind_only_prefers_core_group(self, gw, dyn):
        dyn.resources.search.return_value = [
            discovered("events.k8s.io", "v1", "events"),
            discovered("", "v1", "events"),
        ]

        assert gw.resolve_kind("Event") == ResourceMapping("v1", "Event", "events", True)

    def test_kind_only_ambiguous_across_groups(self, gw, dyn):
        dyn.resources.search.return_value = [
            discovered("a.example.com", "v1", "widgets"),
            discovered("b.example.com", "v1", "widgets"),
        ]

        with pytest.raises(UnknownKindError) as exc:
            gw.resolve_kind("Widget")
        assert "a.example.com/v1" in str(exc.value)

    def test_kind_only_not_found(self, gw, dyn):
        dyn.resources.search.return_value = []

        with pytest.raises(UnknownKindError):
            gw.resolve_kind("Widget")


class TestBuildGateway:

    def test_unparseable_kubeconfig(self):
        with pytest.raises(UpstreamError):
            build_gateway("clusters: [unclosed")

    def test_kubeconfig_must_be_a_mapping(self):
        with pytest.raises(UpstreamError):
            build_gateway("- just\n- a list\n")
