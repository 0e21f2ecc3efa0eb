from .crud_user import user
from .crud_role import role
from .crud_permission import permission
from .crud_resource_permission import resource_permission
from .crud_group import group
from .crud_cluster import cluster
from .crud_k8s_history import k8s_yaml_history
