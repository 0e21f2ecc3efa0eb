"""RBAC 鉴权依赖测试"""
import uuid

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from devops.api import deps
from devops.models.group import ResourcePermission

from conftest import auth_header, grant, make_permission, make_role, make_user


def build_app(db, cache):
    app = FastAPI()
    app.state.permission_cache = cache

    @app.get("/perm", dependencies=[Depends(deps.require_permission("host:view"))])
    def perm():
        return {"ok": True}

    @app.get("/any", dependencies=[Depends(deps.require_any_permission("host:view", "host:update"))])
    def any_perm():
        return {"ok": True}

    @app.get("/hosts/{id}", dependencies=[Depends(deps.require_resource_permission("host", "view"))])
    def resource(id: str):
        return {"ok": True}

    @app.get("/perm-or-role", dependencies=[Depends(deps.require_permission_or_role("host:view", "operator"))])
    def perm_or_role():
        return {"ok": True}

    @app.get("/dynamic/{id}", dependencies=[Depends(deps.dynamic_permission_check)])
    def dynamic_get(id: str):
        return {"ok": True}

    @app.delete("/dynamic/{id}", dependencies=[Depends(deps.dynamic_permission_check)])
    def dynamic_delete(id: str):
        return {"ok": True}

    @app.api_route("/hosts", methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
                   dependencies=[Depends(deps.write_permission_check("host"))])
    def write():
        return {"ok": True}

    @app.get("/admin-only", dependencies=[Depends(deps.require_admin)])
    def admin_only():
        return {"ok": True}

    @app.get("/operators", dependencies=[Depends(deps.require_operator)])
    def operators():
        return {"ok": True}

    @app.get("/developers", dependencies=[Depends(deps.require_developer)])
    def developers():
        return {"ok": True}

    def override_get_db():
        yield db

    app.dependency_overrides[deps.get_db] = override_get_db
    return app


@pytest.fixture
def client(db, cache):
    return TestClient(build_app(db, cache))


@pytest.fixture
def viewer(db):
    role = make_role(db, "viewer")
    return make_user(db, "viewer1", role=role)


ALL_GET_PATHS = [
    "/perm", "/any", f"/hosts/{uuid.uuid4()}", "/perm-or-role",
    "/dynamic/1", "/hosts", "/admin-only", "/operators", "/developers",
]


class TestAuthentication:

    @pytest.mark.parametrize("path", ALL_GET_PATHS)
    def test_missing_token_is_401(self, client, path):
        resp = client.get(path)
        assert resp.status_code == 401
        assert resp.json()["detail"] == "unauthenticated"

    def test_invalid_token_is_401(self, client):
        resp = client.get("/perm", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401


class TestAdminBypass:

    @pytest.mark.parametrize("path", ALL_GET_PATHS)
    def test_admin_passes_every_gate(self, client, path):
        # 管理员没有任何权限记录，也不存在于数据库中
        resp = client.get(path, headers=auth_header(uuid.uuid4(), role_code="admin"))
        assert resp.status_code == 200

    def test_admin_passes_mapped_dynamic_route(self, db, client):
        make_permission(db, "host:delete", path="/dynamic/{id}", method="DELETE")
        resp = client.delete("/dynamic/1", headers=auth_header(uuid.uuid4(), role_code="admin"))
        assert resp.status_code == 200


class TestPermissionGates:

    def test_require_permission(self, db, client, viewer):
        headers = auth_header(viewer.id, role_code="viewer")
        assert client.get("/perm", headers=headers).status_code == 403

        grant(db, viewer.role, make_permission(db, "host:view"))
        client.app.state.permission_cache.invalidate(viewer.id)
        assert client.get("/perm", headers=headers).status_code == 200

    def test_require_any_permission(self, db, client, viewer):
        grant(db, viewer.role, make_permission(db, "host:update"))
        headers = auth_header(viewer.id, role_code="viewer")
        assert client.get("/any", headers=headers).status_code == 200

    def test_resource_permission_uses_path_id(self, db, client, viewer):
        host_id = uuid.uuid4()
        db.add(ResourcePermission(role_id=viewer.role_id, resource_type="host",
                                  resource_id=host_id, actions='["view"]'))
        db.commit()
        headers = auth_header(viewer.id, role_code="viewer")

        assert client.get(f"/hosts/{host_id}", headers=headers).status_code == 200
        assert client.get(f"/hosts/{uuid.uuid4()}", headers=headers).status_code == 403

    def test_permission_or_role(self, db, client, viewer):
        operator = make_user(db, "op1", role=make_role(db, "operator"))
        assert client.get("/perm-or-role", headers=auth_header(operator.id, role_code="operator")).status_code == 200
        assert client.get("/perm-or-role", headers=auth_header(viewer.id, role_code="viewer")).status_code == 403

    def test_dynamic_unmapped_route_is_allowed(self, client, viewer):
        resp = client.get("/dynamic/1", headers=auth_header(viewer.id, role_code="viewer"))
        assert resp.status_code == 200

    def test_dynamic_mapped_route_requires_code(self, db, client, viewer):
        perm = make_permission(db, "host:delete", path="/dynamic/{id}", method="DELETE")
        headers = auth_header(viewer.id, role_code="viewer")
        assert client.delete("/dynamic/1", headers=headers).status_code == 403
        # GET 没有映射，放行
        assert client.get("/dynamic/1", headers=headers).status_code == 200

        grant(db, viewer.role, perm)
        client.app.state.permission_cache.invalidate_all()
        assert client.delete("/dynamic/1", headers=headers).status_code == 200

    @pytest.mark.parametrize("method,code", [
        ("GET", "host:view"),
        ("POST", "host:create"),
        ("PUT", "host:update"),
        ("PATCH", "host:update"),
        ("DELETE", "host:delete"),
    ])
    def test_write_permission_check_maps_method_to_code(self, db, client, viewer, method, code):
        grant(db, viewer.role, make_permission(db, code))
        headers = auth_header(viewer.id, role_code="viewer")

        assert client.request(method, "/hosts", headers=headers).status_code == 200

        other = "POST" if method != "POST" else "DELETE"
        assert client.request(other, "/hosts", headers=headers).status_code == 403


class TestRoleGates:

    @pytest.mark.parametrize("role,expected", [
        ("operator", {"/admin-only": 403, "/operators": 200, "/developers": 200}),
        ("develop", {"/admin-only": 403, "/operators": 403, "/developers": 200}),
        ("viewer", {"/admin-only": 403, "/operators": 403, "/developers": 403}),
    ])
    def test_role_hierarchy(self, client, role, expected):
        headers = auth_header(uuid.uuid4(), role_code=role)
        for path, status_code in expected.items():
            assert client.get(path, headers=headers).status_code == status_code, path
