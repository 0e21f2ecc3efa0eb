# 导入所有模型以便 create_all 可以检测到
from devops.models.user import User, Role, Permission
from devops.models.group import UserGroup, ResourcePermission
from devops.models.k8s import Cluster, K8sYAMLHistory
