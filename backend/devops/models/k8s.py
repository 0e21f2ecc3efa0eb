"""Kubernetes 集群与 YAML 历史模型"""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, Text, DateTime, Uuid, Index
from sqlalchemy.dialects import mysql

from devops.db.base_class import Base

# 集群状态
CLUSTER_STATUS_UNAVAILABLE = 0
CLUSTER_STATUS_OK = 1
CLUSTER_STATUS_CONNECT_FAILED = 2

# MySQL 的 DATETIME 默认只到秒，历史按时间排序裁剪需要微秒
PreciseDateTime = DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")


class Cluster(Base):
    """K8s 集群表"""
    __tablename__ = "clusters"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, index=True)
    code = Column(String(50), unique=True, nullable=False)
    version = Column(String(30), nullable=True)
    api_server = Column(String(255), nullable=False)
    kubeconfig = Column(Text, nullable=False)  # 加密后的 kubeconfig，不出现在响应中
    description = Column(String(255), nullable=True)
    env_code = Column(String(20), nullable=True, index=True)  # dev/test/staging/prod
    status = Column(Integer, nullable=False, default=CLUSTER_STATUS_OK)
    node_count = Column(Integer, nullable=False, default=0)
    pod_count = Column(Integer, nullable=False, default=0)
    last_check_at = Column(DateTime, nullable=True)
    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class K8sYAMLHistory(Base):
    """YAML 应用历史（只追加，按资源维度裁剪）"""
    __tablename__ = "k8s_yaml_histories"
    __table_args__ = (
        Index("ix_k8s_yaml_history_resource", "cluster_id", "kind", "namespace", "name"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cluster_id = Column(Uuid, nullable=False)
    kind = Column(String(100), nullable=False)
    namespace = Column(String(255), nullable=False, default="")
    name = Column(String(255), nullable=False)
    yaml = Column(Text, nullable=False)
    action = Column(String(50), nullable=True)
    created_by = Column(Uuid, nullable=True)
    username = Column(String(50), nullable=True)
    created_at = Column(PreciseDateTime, nullable=False, default=datetime.utcnow, index=True)
