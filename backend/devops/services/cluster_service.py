"""集群管理服务：kubeconfig 加密存储、连接探测、概览"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from devops import crud
from devops.core.config import settings
from devops.core.crypto import DecryptError, SecretBox
from devops.core.errors import ConflictError, NotFoundError, UpstreamError
from devops.k8s.gateway import ClusterGateway, build_gateway
from devops.models.k8s import CLUSTER_STATUS_CONNECT_FAILED, CLUSTER_STATUS_OK, Cluster
from devops.schemas.k8s import ClusterCreate, ClusterOverview, ClusterUpdate

logger = logging.getLogger(__name__)

GatewayFactory = Callable[[str], ClusterGateway]


class ClusterService:

    def __init__(
        self,
        db: Session,
        gateway_factory: GatewayFactory = build_gateway,
        secret_box: Optional[SecretBox] = None,
    ):
        self.db = db
        self.gateway_factory = gateway_factory
        self.secret_box = secret_box or SecretBox(settings.kubeconfig_key)

    def get(self, cluster_id) -> Cluster:
        cluster = crud.cluster.get(self.db, id=cluster_id)
        if cluster is None:
            raise NotFoundError("集群不存在")
        return cluster

    def list(
        self, env_code: Optional[str] = None, keyword: Optional[str] = None, skip: int = 0, limit: int = 20
    ) -> Tuple[List[Cluster], int]:
        return crud.cluster.get_multi_filtered(
            self.db, env_code=env_code, keyword=keyword, skip=skip, limit=limit
        )

    def create(self, obj_in: ClusterCreate, created_by=None) -> Cluster:
        """创建集群；连接探测失败时状态记为连接失败，但仍然创建"""
        if crud.cluster.get_by_code(self.db, code=obj_in.code):
            raise ConflictError(f"集群编码已存在: {obj_in.code}")

        data = obj_in.model_dump()
        data["kubeconfig"] = self.secret_box.encrypt(obj_in.kubeconfig)
        data["created_by"] = created_by
        data["status"] = CLUSTER_STATUS_OK

        try:
            overview = self.gateway_factory(obj_in.kubeconfig).overview()
        except UpstreamError as e:
            logger.warning("Cluster %s connection probe failed: %s", obj_in.code, e.message)
            data["status"] = CLUSTER_STATUS_CONNECT_FAILED
        else:
            data["version"] = overview.get("version") or None
            data["node_count"] = overview.get("node_count", 0)
            data["pod_count"] = overview.get("pod_count", 0)
            data["last_check_at"] = datetime.utcnow()

        cluster = crud.cluster.create(self.db, obj_in=data)
        logger.info("Cluster %s created (status=%s)", cluster.code, cluster.status)
        return cluster

    def update(self, cluster_id, obj_in: ClusterUpdate) -> Cluster:
        cluster = self.get(cluster_id)
        data = obj_in.model_dump(exclude_unset=True, exclude_none=True)
        if data.get("kubeconfig"):
            data["kubeconfig"] = self.secret_box.encrypt(data["kubeconfig"])
        else:
            data.pop("kubeconfig", None)
        return crud.cluster.update(self.db, db_obj=cluster, obj_in=data)

    def delete(self, cluster_id) -> None:
        self.get(cluster_id)
        crud.cluster.remove(self.db, id=cluster_id)

    def gateway_for(self, cluster: Cluster) -> ClusterGateway:
        """
        Raises:
            UpstreamError: kubeconfig 解密失败或无法解析
        """
        try:
            kubeconfig = self.secret_box.decrypt(cluster.kubeconfig)
        except DecryptError as e:
            raise UpstreamError(f"kubeconfig 解密失败: {e}") from e
        return self.gateway_factory(kubeconfig)

    def overview(self, cluster_id) -> ClusterOverview:
        cluster = self.get(cluster_id)
        return ClusterOverview(**self.gateway_for(cluster).overview())

    def test_connection(self, cluster_id) -> ClusterOverview:
        """探测连接并回写状态与节点/Pod 数"""
        cluster = self.get(cluster_id)
        gateway = self.gateway_for(cluster)
        try:
            data: Dict[str, Any] = gateway.overview()
        except UpstreamError:
            crud.cluster.update_status(
                self.db, cluster=cluster, status=CLUSTER_STATUS_CONNECT_FAILED, node_count=0, pod_count=0
            )
            raise

        overview = ClusterOverview(**data)
        crud.cluster.update_status(
            self.db,
            cluster=cluster,
            status=CLUSTER_STATUS_OK,
            version=overview.version or None,
            node_count=overview.node_count,
            pod_count=overview.pod_count,
        )
        return overview
