"""Kubernetes API 访问层

服务层只依赖 ClusterGateway 协议；默认实现基于 kubernetes.dynamic.DynamicClient，
测试中可替换为内存实现。
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import urllib3
import yaml
from kubernetes import client, config, dynamic
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from kubernetes.dynamic.exceptions import ResourceNotFoundError, ResourceNotUniqueError
from kubernetes.dynamic.resource import ResourceList

from devops.core.config import settings
from devops.core.errors import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)


class UnknownKindError(LookupError):
    """集群的发现信息中没有该 apiVersion/kind，或只给 kind 时无法唯一确定"""


@dataclass(frozen=True)
class ResourceMapping:
    api_version: str
    kind: str
    resource: str  # REST 资源名，如 deployments
    namespaced: bool


@runtime_checkable
class ClusterGateway(Protocol):
    def resolve(self, api_version: str, kind: str) -> ResourceMapping: ...

    def resolve_kind(self, kind: str) -> ResourceMapping: ...

    def apply(
        self,
        mapping: ResourceMapping,
        body: Dict[str, Any],
        namespace: Optional[str] = None,
        dry_run: bool = False,
    ) -> Dict[str, Any]: ...

    def get(self, mapping: ResourceMapping, name: str, namespace: Optional[str] = None) -> Dict[str, Any]: ...

    def overview(self) -> Dict[str, Any]: ...


def _upstream(action: str, exc: Exception) -> UpstreamError:
    if isinstance(exc, ApiException):
        detail = f"{exc.status} {exc.reason}"
        if exc.body:
            detail = f"{detail}: {exc.body if isinstance(exc.body, str) else exc.body.decode('utf-8', 'replace')}"
    else:
        detail = str(exc)
    return UpstreamError(f"{action} 失败: {detail}")


class DynamicClusterGateway:
    """基于 DynamicClient 的默认实现，所有请求都带超时"""

    def __init__(self, api_client: client.ApiClient, field_manager: str, request_timeout: float):
        self.api_client = api_client
        self.field_manager = field_manager
        self.request_timeout = request_timeout
        self._dynamic: Optional[dynamic.DynamicClient] = None

    @property
    def dynamic(self) -> dynamic.DynamicClient:
        # DynamicClient 初始化时会做一次发现请求，延迟到首次使用
        if self._dynamic is None:
            try:
                self._dynamic = dynamic.DynamicClient(self.api_client)
            except (ApiException, urllib3.exceptions.HTTPError) as e:
                raise _upstream("连接集群", e) from e
        return self._dynamic

    def _resource(self, mapping: ResourceMapping):
        try:
            return self.dynamic.resources.get(api_version=mapping.api_version, kind=mapping.kind)
        except ResourceNotFoundError as e:
            raise UnknownKindError(f"{mapping.api_version}/{mapping.kind}") from e
        except ResourceNotUniqueError as e:
            raise UnknownKindError(f"{mapping.api_version}/{mapping.kind} 匹配到多个资源") from e

    def resolve(self, api_version: str, kind: str) -> ResourceMapping:
        try:
            resource = self.dynamic.resources.get(api_version=api_version, kind=kind)
        except ResourceNotFoundError as e:
            raise UnknownKindError(f"{api_version}/{kind}") from e
        except ResourceNotUniqueError as e:
            raise UnknownKindError(f"{api_version}/{kind} 匹配到多个资源") from e
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _upstream(f"解析 {api_version}/{kind}", e) from e
        return ResourceMapping(
            api_version=api_version,
            kind=kind,
            resource=resource.name,
            namespaced=bool(resource.namespaced),
        )

    def resolve_kind(self, kind: str) -> ResourceMapping:
        """
        只按 kind 解析：取各 API 组的首选版本，多个组都有时优先核心组

        Raises:
            UnknownKindError: 找不到，或仍然无法唯一确定
        """
        try:
            candidates = [r for r in self.dynamic.resources.search(kind=kind) if not isinstance(r, ResourceList)]
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _upstream(f"解析 {kind}", e) from e
        if len(candidates) > 1:
            candidates = [r for r in candidates if r.preferred] or candidates
        if len(candidates) > 1:
            candidates = [r for r in candidates if not r.group] or candidates
        if not candidates:
            raise UnknownKindError(kind)
        if len(candidates) > 1:
            versions = ", ".join(sorted(r.group_version for r in candidates))
            raise UnknownKindError(f"{kind} 匹配到多个资源 ({versions})，请指定 apiVersion")
        resource = candidates[0]
        return ResourceMapping(
            api_version=resource.group_version,
            kind=kind,
            resource=resource.name,
            namespaced=bool(resource.namespaced),
        )

    def apply(
        self,
        mapping: ResourceMapping,
        body: Dict[str, Any],
        namespace: Optional[str] = None,
        dry_run: bool = False,
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "field_manager": self.field_manager,
            "_request_timeout": self.request_timeout,
        }
        if dry_run:
            kwargs["dry_run"] = "All"
        try:
            result = self.dynamic.server_side_apply(
                self._resource(mapping),
                body=body,
                name=body["metadata"]["name"],
                namespace=namespace,
                force_conflicts=True,
                **kwargs,
            )
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _upstream(f"应用 {mapping.kind}/{body['metadata']['name']}", e) from e
        return result.to_dict()

    def get(self, mapping: ResourceMapping, name: str, namespace: Optional[str] = None) -> Dict[str, Any]:
        try:
            result = self.dynamic.get(
                self._resource(mapping),
                name=name,
                namespace=namespace,
                _request_timeout=self.request_timeout,
            )
        except ApiException as e:
            if e.status == 404:
                raise NotFoundError(f"{mapping.kind}/{name} 不存在") from e
            raise _upstream(f"获取 {mapping.kind}/{name}", e) from e
        except urllib3.exceptions.HTTPError as e:
            raise _upstream(f"获取 {mapping.kind}/{name}", e) from e
        return result.to_dict()

    def overview(self) -> Dict[str, Any]:
        """集群概览；版本获取失败视为连接失败，其余计数尽力而为"""
        timeout = self.request_timeout
        try:
            version = client.VersionApi(self.api_client).get_code(_request_timeout=timeout)
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _upstream("获取集群版本", e) from e

        core_v1 = client.CoreV1Api(self.api_client)
        apps_v1 = client.AppsV1Api(self.api_client)
        data: Dict[str, Any] = {"version": version.git_version or ""}

        def count(key: str, fetch):
            try:
                items = fetch(_request_timeout=timeout).items or []
            except (ApiException, urllib3.exceptions.HTTPError) as e:
                logger.warning("Failed to list %s: %s", key, e)
                return []
            data[key] = len(items)
            return items

        nodes = count("node_count", core_v1.list_node)
        data["ready_nodes"] = sum(
            1
            for node in nodes
            if any(
                c.type == "Ready" and c.status == "True"
                for c in (node.status.conditions if node.status else None) or []
            )
        )
        pods = count("pod_count", core_v1.list_pod_for_all_namespaces)
        data["running_pods"] = sum(1 for p in pods if p.status and p.status.phase == "Running")
        count("namespace_count", core_v1.list_namespace)
        count("deployment_count", apps_v1.list_deployment_for_all_namespaces)
        count("service_count", core_v1.list_service_for_all_namespaces)
        return data


def build_gateway(kubeconfig: str) -> ClusterGateway:
    """
    用明文 kubeconfig 构建默认网关

    Raises:
        UpstreamError: kubeconfig 无法解析
    """
    try:
        config_dict = yaml.safe_load(kubeconfig)
        if not isinstance(config_dict, dict):
            raise ConfigException("kubeconfig is not a mapping")
        api_client = config.new_client_from_config_dict(config_dict)
    except (yaml.YAMLError, ConfigException) as e:
        raise UpstreamError(f"kubeconfig 无效: {e}") from e
    return DynamicClusterGateway(
        api_client,
        field_manager=settings.K8S_FIELD_MANAGER,
        request_timeout=settings.K8S_REQUEST_TIMEOUT,
    )
