"""集群管理服务测试"""
import uuid

import pytest

from devops.core.crypto import SecretBox
from devops.core.errors import ConflictError, NotFoundError, UpstreamError
from devops.models.k8s import CLUSTER_STATUS_CONNECT_FAILED, CLUSTER_STATUS_OK
from devops.schemas.k8s import ClusterCreate, ClusterUpdate
from devops.services.cluster_service import ClusterService

from conftest import FakeGateway

KUBECONFIG = "apiVersion: v1\nkind: Config\ncurrent-context: dev\n"


@pytest.fixture
def box():
    return SecretBox("cluster-test-key")


def cluster_in(code="dev", **kwargs):
    data = dict(name="Dev", code=code, api_server="https://k8s.local:6443", kubeconfig=KUBECONFIG, env_code="dev")
    data.update(kwargs)
    return ClusterCreate(**data)


class TestClusterService:

    def test_create_encrypts_kubeconfig_and_probes(self, db, box):
        seen = []

        def factory(kubeconfig):
            seen.append(kubeconfig)
            return FakeGateway()

        service = ClusterService(db, gateway_factory=factory, secret_box=box)
        cluster = service.create(cluster_in(), created_by=uuid.uuid4())

        assert seen == [KUBECONFIG]
        assert cluster.kubeconfig != KUBECONFIG
        assert box.decrypt(cluster.kubeconfig) == KUBECONFIG
        assert cluster.status == CLUSTER_STATUS_OK
        assert (cluster.version, cluster.node_count, cluster.pod_count) == ("v1.29.0", 3, 12)
        assert cluster.last_check_at is not None

    def test_create_with_failed_probe_still_creates(self, db, box):
        service = ClusterService(db, gateway_factory=lambda k: FakeGateway(fail_overview=True), secret_box=box)
        cluster = service.create(cluster_in())

        assert cluster.status == CLUSTER_STATUS_CONNECT_FAILED
        assert service.get(cluster.id).code == "dev"

    def test_duplicate_code(self, db, box):
        service = ClusterService(db, gateway_factory=lambda k: FakeGateway(), secret_box=box)
        service.create(cluster_in())
        with pytest.raises(ConflictError):
            service.create(cluster_in(name="Other"))

    def test_update_reencrypts_only_when_kubeconfig_given(self, db, box):
        service = ClusterService(db, gateway_factory=lambda k: FakeGateway(), secret_box=box)
        cluster = service.create(cluster_in())
        original = cluster.kubeconfig

        service.update(cluster.id, ClusterUpdate(description="primary"))
        assert cluster.kubeconfig == original

        service.update(cluster.id, ClusterUpdate(kubeconfig="apiVersion: v1\nkind: Config\n"))
        assert box.decrypt(cluster.kubeconfig) == "apiVersion: v1\nkind: Config\n"

    def test_list_filters(self, db, box):
        service = ClusterService(db, gateway_factory=lambda k: FakeGateway(), secret_box=box)
        service.create(cluster_in(code="dev-1", env_code="dev"))
        service.create(cluster_in(code="prod-1", name="Prod", env_code="prod"))

        items, total = service.list(env_code="prod")
        assert total == 1 and items[0].code == "prod-1"
        items, total = service.list(keyword="dev")
        assert total == 1 and items[0].code == "dev-1"

    def test_test_connection_updates_status(self, db, box):
        gateway = FakeGateway(overview={"version": "v1.30.1", "node_count": 5, "ready_nodes": 4, "pod_count": 40})
        service = ClusterService(db, gateway_factory=lambda k: gateway, secret_box=box)
        cluster = service.create(cluster_in())

        overview = service.test_connection(cluster.id)

        assert overview.ready_nodes == 4
        assert (cluster.version, cluster.node_count, cluster.pod_count) == ("v1.30.1", 5, 40)

        gateway.fail_overview = True
        with pytest.raises(UpstreamError):
            service.test_connection(cluster.id)
        assert cluster.status == CLUSTER_STATUS_CONNECT_FAILED
        assert cluster.node_count == 0

    def test_corrupted_kubeconfig_is_upstream_error(self, db, box):
        service = ClusterService(db, gateway_factory=lambda k: FakeGateway(), secret_box=box)
        cluster = service.create(cluster_in())
        cluster.kubeconfig = "garbage"
        db.commit()

        with pytest.raises(UpstreamError):
            service.overview(cluster.id)

    def test_delete(self, db, box):
        service = ClusterService(db, gateway_factory=lambda k: FakeGateway(), secret_box=box)
        cluster = service.create(cluster_in())
        service.delete(cluster.id)
        with pytest.raises(NotFoundError):
            service.get(cluster.id)
