from .auth import UserLogin, Token, Principal, ProfileResponse
from .user import (
    RoleBrief, RoleResponse, RolePermissionsUpdate,
    UserCreate, UserUpdate, UserResponse, UserListResponse,
)
from .permission import (
    PermissionCreate, PermissionUpdate, PermissionResponse, PermissionNode,
    ResourcePermissionCreate, ResourcePermissionUpdate,
    ResourcePermissionResponse, ResourcePermissionListResponse,
)
from .group import (
    GroupCreate, GroupUpdate, GroupMember, GroupResponse, GroupNode,
    GroupListResponse, GroupMembersAdd, GroupRolesSet,
)
from .k8s import (
    ClusterCreate, ClusterUpdate, ClusterResponse, ClusterListResponse,
    ClusterOverview, ApplyYAMLRequest, ApplyResult, ApplyYAMLResponse,
    FormatYAMLRequest, YAMLHistoryResponse,
)
