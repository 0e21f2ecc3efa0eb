# Import all the models, so that Base has them before being
# imported by create_all
from devops.db.base_class import Base  # noqa
from devops.models.user import User, Role, Permission  # noqa
from devops.models.group import UserGroup, ResourcePermission  # noqa
from devops.models.k8s import Cluster, K8sYAMLHistory  # noqa
