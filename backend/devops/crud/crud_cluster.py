"""集群 CRUD 操作"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from devops.crud.base import CRUDBase
from devops.models.k8s import Cluster
from devops.schemas.k8s import ClusterCreate, ClusterUpdate


class CRUDCluster(CRUDBase[Cluster, ClusterCreate, ClusterUpdate]):
    """集群 CRUD 操作类，kubeconfig 的加解密由服务层负责"""

    def get_by_code(self, db: Session, *, code: str) -> Optional[Cluster]:
        return db.query(Cluster).filter(Cluster.code == code).first()

    def get_multi_filtered(
        self,
        db: Session,
        *,
        env_code: Optional[str] = None,
        keyword: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Cluster], int]:
        query = db.query(Cluster)
        if env_code:
            query = query.filter(Cluster.env_code == env_code)
        if keyword:
            like = f"%{keyword}%"
            query = query.filter((Cluster.name.like(like)) | (Cluster.code.like(like)))
        total = query.count()
        items = query.order_by(Cluster.created_at.desc()).offset(skip).limit(limit).all()
        return items, total

    def update_status(
        self,
        db: Session,
        *,
        cluster: Cluster,
        status: int,
        version: Optional[str] = None,
        node_count: Optional[int] = None,
        pod_count: Optional[int] = None
    ) -> Cluster:
        cluster.status = status
        cluster.last_check_at = datetime.utcnow()
        if version is not None:
            cluster.version = version
        if node_count is not None:
            cluster.node_count = node_count
        if pod_count is not None:
            cluster.pod_count = pod_count
        db.add(cluster)
        db.commit()
        db.refresh(cluster)
        return cluster


cluster = CRUDCluster(Cluster)
