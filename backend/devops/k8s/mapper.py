"""GVK -> REST 资源映射，单次调用内缓存发现结果"""
import logging
from typing import Dict, Tuple

from devops.core.errors import ValidationError
from devops.k8s.gateway import ClusterGateway, ResourceMapping, UnknownKindError

logger = logging.getLogger(__name__)


class ResourceMapper:
    """每次 apply 调用新建一个，同一批对象里重复的 Kind 只解析一次"""

    def __init__(self, gateway: ClusterGateway):
        self.gateway = gateway
        self._cache: Dict[Tuple[str, str], ResourceMapping] = {}

    def resolve(self, api_version: str, kind: str) -> ResourceMapping:
        """
        Raises:
            ValidationError: 集群不认识该 apiVersion/kind
        """
        key = (api_version, kind)
        mapping = self._cache.get(key)
        if mapping is not None:
            return mapping
        try:
            mapping = self.gateway.resolve(api_version, kind)
        except UnknownKindError as e:
            raise ValidationError(f"集群不支持的资源类型: {api_version} {kind}") from e
        self._cache[key] = mapping
        logger.debug("Resolved %s %s -> %s (namespaced=%s)", api_version, kind, mapping.resource, mapping.namespaced)
        return mapping

    def resolve_kind(self, kind: str) -> ResourceMapping:
        """未给出 apiVersion 时按 kind 取首选版本"""
        key = ("", kind)
        mapping = self._cache.get(key)
        if mapping is not None:
            return mapping
        try:
            mapping = self.gateway.resolve_kind(kind)
        except UnknownKindError as e:
            raise ValidationError(f"无法确定资源类型: {e}") from e
        self._cache[key] = mapping
        self._cache[(mapping.api_version, kind)] = mapping
        return mapping
