"""YAML 应用历史 CRUD 操作"""
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from devops.crud.base import CRUDBase
from devops.models.k8s import K8sYAMLHistory


class CRUDK8sYAMLHistory(CRUDBase[K8sYAMLHistory, BaseModel, BaseModel]):

    def _resource_query(self, db: Session, cluster_id, kind: str, namespace: str, name: str):
        return db.query(K8sYAMLHistory).filter(
            K8sYAMLHistory.cluster_id == cluster_id,
            K8sYAMLHistory.kind == kind,
            K8sYAMLHistory.namespace == (namespace or ""),
            K8sYAMLHistory.name == name,
        )

    def get_multi_filtered(
        self,
        db: Session,
        *,
        cluster_id,
        kind: Optional[str] = None,
        namespace: Optional[str] = None,
        name: Optional[str] = None,
        limit: int = 20
    ) -> List[K8sYAMLHistory]:
        """按资源过滤，最新的在前"""
        query = db.query(K8sYAMLHistory).filter(K8sYAMLHistory.cluster_id == cluster_id)
        if kind:
            query = query.filter(K8sYAMLHistory.kind == kind)
        if namespace is not None:
            query = query.filter(K8sYAMLHistory.namespace == namespace)
        if name:
            query = query.filter(K8sYAMLHistory.name == name)
        return query.order_by(K8sYAMLHistory.created_at.desc()).limit(limit).all()

    def trim(self, db: Session, *, cluster_id, kind: str, namespace: str, name: str, keep: int) -> int:
        """只保留某资源最新的 keep 条历史，返回删除数量"""
        stale_ids = [
            row.id
            for row in self._resource_query(db, cluster_id, kind, namespace, name)
            .with_entities(K8sYAMLHistory.id)
            .order_by(K8sYAMLHistory.created_at.desc())
            .offset(keep)
            .all()
        ]
        if not stale_ids:
            return 0
        db.query(K8sYAMLHistory).filter(K8sYAMLHistory.id.in_(stale_ids)).delete(
            synchronize_session=False
        )
        db.commit()
        return len(stale_ids)


k8s_yaml_history = CRUDK8sYAMLHistory(K8sYAMLHistory)
