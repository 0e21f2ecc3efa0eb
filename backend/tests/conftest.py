import os
import sys
from pathlib import Path

import pytest

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# 测试使用内存 SQLite，需在导入 devops 之前设置
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")
os.environ.setdefault("KUBECONFIG_ENCRYPT_KEY", "unit-test-kubeconfig-key")

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from devops.core.errors import UpstreamError  # noqa: E402
from devops.core.security import create_access_token, get_password_hash  # noqa: E402
from devops.db.base import Base  # noqa: E402
from devops.k8s.gateway import ResourceMapping, UnknownKindError  # noqa: E402
from devops.models.group import UserGroup  # noqa: E402
from devops.models.user import Permission, Role, User  # noqa: E402
from devops.services.permission_cache import PermissionCache  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def cache():
    return PermissionCache(ttl=300)


# ==================== 数据构造 ====================

def make_role(db, code, name=None):
    role = Role(name=name or code, code=code)
    db.add(role)
    db.commit()
    return role


def make_permission(db, code, status=1, path=None, method=None, parent=None, sort=0):
    resource, _, action = code.partition(":")
    perm = Permission(
        name=code,
        code=code,
        type="api",
        resource=resource,
        action=action,
        path=path,
        method=method,
        parent_id=parent.id if parent else None,
        status=status,
        sort=sort,
    )
    db.add(perm)
    db.commit()
    return perm


def make_user(db, username, role=None, password="secret123", status=1):
    user = User(
        username=username,
        password_hash=get_password_hash(password),
        role_id=role.id if role else None,
        status=status,
    )
    db.add(user)
    db.commit()
    return user


def make_group(db, name, users=(), roles=(), parent=None):
    group = UserGroup(name=name, parent_id=parent.id if parent else None)
    group.users = list(users)
    group.roles = list(roles)
    db.add(group)
    db.commit()
    return group


def grant(db, role, *perms):
    role.permissions.extend(perms)
    db.commit()


def auth_header(user_id, role_code="", username="tester"):
    token = create_access_token(subject=user_id, username=username, role_code=role_code)
    return {"Authorization": f"Bearer {token}"}


# ==================== 假集群 ====================

DEFAULT_KINDS = {
    ("v1", "ConfigMap"): ResourceMapping("v1", "ConfigMap", "configmaps", True),
    ("v1", "Service"): ResourceMapping("v1", "Service", "services", True),
    ("v1", "Namespace"): ResourceMapping("v1", "Namespace", "namespaces", False),
    ("apps/v1", "Deployment"): ResourceMapping("apps/v1", "Deployment", "deployments", True),
    ("rbac.authorization.k8s.io/v1", "ClusterRole"): ResourceMapping(
        "rbac.authorization.k8s.io/v1", "ClusterRole", "clusterroles", False
    ),
}


class FakeGateway:
    """内存中的集群：按 (资源, 命名空间, 名称) 保存对象"""

    def __init__(self, kinds=None, overview=None, fail_overview=False):
        self.kinds = dict(DEFAULT_KINDS if kinds is None else kinds)
        self.objects = {}
        self.applied = []
        self.resolve_calls = []
        self._overview = overview or {"version": "v1.29.0", "node_count": 3, "ready_nodes": 3, "pod_count": 12}
        self.fail_overview = fail_overview

    def resolve(self, api_version, kind):
        self.resolve_calls.append((api_version, kind))
        try:
            return self.kinds[(api_version, kind)]
        except KeyError:
            raise UnknownKindError(f"{api_version}/{kind}")

    def resolve_kind(self, kind):
        self.resolve_calls.append(("", kind))
        matches = [m for (_, k), m in self.kinds.items() if k == kind]
        if len(matches) != 1:
            raise UnknownKindError(kind)
        return matches[0]

    def apply(self, mapping, body, namespace=None, dry_run=False):
        self.applied.append({"mapping": mapping, "body": body, "namespace": namespace, "dry_run": dry_run})
        if dry_run:
            return body
        key = (mapping.resource, namespace or "", body["metadata"]["name"])
        stored = dict(body)
        stored["metadata"] = dict(body["metadata"], uid="uid-1", resourceVersion="1")
        stored["status"] = {"observed": True}
        self.objects[key] = stored
        return stored

    def get(self, mapping, name, namespace=None):
        return self.objects[(mapping.resource, namespace or "", name)]

    def overview(self):
        if self.fail_overview:
            raise UpstreamError("获取集群版本 失败: connection refused")
        return dict(self._overview)


@pytest.fixture
def gateway():
    return FakeGateway()
