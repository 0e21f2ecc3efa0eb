"""
YAML 应用服务

流程:
1. 解码输入为多个文档，展开 List，逐个校验 apiVersion/kind/metadata.name
2. 通过 ResourceMapper 解析资源与作用域，处理命名空间，清理服务端字段
3. Server-Side Apply（强制接管字段），dry-run 时使用 dryRun=All
4. 非 dry-run 时写入历史并裁剪到保留条数；历史写入失败只记日志

校验与解析都在第一个对象提交前完成；提交阶段某个对象失败时，
之前已提交的对象不会回滚。
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from devops import crud
from devops.core.config import settings
from devops.core.errors import ValidationError
from devops.k8s import documents
from devops.k8s.gateway import ClusterGateway, ResourceMapping
from devops.k8s.mapper import ResourceMapper
from devops.models.k8s import K8sYAMLHistory
from devops.schemas.auth import Principal
from devops.schemas.k8s import ApplyResult
from devops.services.cluster_service import ClusterService

logger = logging.getLogger(__name__)

ACTION_APPLIED = "applied"
ACTION_VALIDATED = "validated"
DEFAULT_HISTORY_ACTION = "apply"


@dataclass
class PreparedObject:
    mapping: ResourceMapping
    body: Dict[str, Any]
    name: str
    namespace: str


class K8sYAMLService:

    def __init__(
        self,
        db: Session,
        cluster_service: ClusterService,
        history_retention: Optional[int] = None,
    ):
        self.db = db
        self.cluster_service = cluster_service
        if history_retention is None:
            history_retention = settings.K8S_YAML_HISTORY_RETENTION
        self.history_retention = history_retention

    def _prepare(self, mapper: ResourceMapper, obj: Dict[str, Any], default_namespace: str) -> PreparedObject:
        api_version, kind, name = documents.object_key(obj)
        mapping = mapper.resolve(api_version, kind)
        body = documents.sanitize(obj)

        if mapping.namespaced:
            namespace = documents.get_namespace(body) or default_namespace
            if not namespace:
                raise ValidationError(f"{kind}/{name} 需要指定命名空间")
            documents.set_namespace(body, namespace)
        else:
            namespace = ""
            documents.strip_namespace(body)
        return PreparedObject(mapping=mapping, body=body, name=name, namespace=namespace)

    def apply_yaml(
        self,
        cluster_id,
        yaml_text: str,
        namespace: Optional[str] = None,
        dry_run: bool = False,
        actor: Optional[Principal] = None,
        action: Optional[str] = None,
    ) -> List[ApplyResult]:
        """
        应用一个或多个对象

        Raises:
            NotFoundError: 集群不存在
            ValidationError: 输入为空、对象缺少必需字段、缺少命名空间或 Kind 不被集群支持
            UpstreamError: kubeconfig 无法解密或 API Server 调用失败
        """
        cluster = self.cluster_service.get(cluster_id)
        objects = documents.parse_objects(yaml_text)
        gateway = self.cluster_service.gateway_for(cluster)
        mapper = ResourceMapper(gateway)
        prepared = [self._prepare(mapper, obj, namespace or "") for obj in objects]

        results = []
        for item in prepared:
            gateway.apply(item.mapping, item.body, namespace=item.namespace or None, dry_run=dry_run)
            if not dry_run:
                self._record_history(cluster.id, item, actor, action or DEFAULT_HISTORY_ACTION)
            results.append(ApplyResult(
                kind=item.mapping.kind,
                name=item.name,
                namespace=item.namespace or None,
                action=ACTION_VALIDATED if dry_run else ACTION_APPLIED,
            ))

        logger.info(
            "Applied %d object(s) to cluster %s (dry_run=%s, user=%s)",
            len(results), cluster.code, dry_run, actor.username if actor else "-",
        )
        return results

    def _record_history(self, cluster_id, item: PreparedObject, actor: Optional[Principal], action: str) -> None:
        try:
            self.db.add(K8sYAMLHistory(
                cluster_id=cluster_id,
                kind=item.mapping.kind,
                namespace=item.namespace,
                name=item.name,
                yaml=documents.dump_document(item.body),
                action=action,
                created_by=actor.user_id if actor else None,
                username=actor.username if actor else None,
            ))
            self.db.commit()
            crud.k8s_yaml_history.trim(
                self.db,
                cluster_id=cluster_id,
                kind=item.mapping.kind,
                namespace=item.namespace,
                name=item.name,
                keep=self.history_retention,
            )
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to record YAML history for %s/%s", item.mapping.kind, item.name)

    def get_resource_yaml(
        self,
        cluster_id,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> str:
        """获取集群中现有对象的 YAML（已清理服务端字段），未给 apiVersion 时按 kind 取首选版本"""
        if not kind or not name:
            raise ValidationError("kind 与 name 必填")
        gateway: ClusterGateway = self.cluster_service.gateway_for(self.cluster_service.get(cluster_id))
        mapper = ResourceMapper(gateway)
        mapping = mapper.resolve(api_version, kind) if api_version else mapper.resolve_kind(kind)
        if mapping.namespaced and not namespace:
            raise ValidationError(f"{kind}/{name} 需要指定命名空间")
        obj = gateway.get(mapping, name, namespace=namespace if mapping.namespaced else None)
        return documents.dump_document(documents.sanitize(obj))

    def format_yaml(self, yaml_text: str) -> str:
        return documents.format_documents(yaml_text)

    def list_yaml_history(
        self,
        cluster_id,
        kind: Optional[str] = None,
        namespace: Optional[str] = None,
        name: Optional[str] = None,
        limit: int = 20,
    ) -> List[K8sYAMLHistory]:
        self.cluster_service.get(cluster_id)
        return crud.k8s_yaml_history.get_multi_filtered(
            self.db, cluster_id=cluster_id, kind=kind, namespace=namespace, name=name, limit=limit
        )
