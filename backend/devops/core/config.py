import os
from typing import List, Optional, Union

from pydantic import AnyHttpUrl, validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "DevOps Console"
    SECRET_KEY: str = os.getenv("SECRET_KEY", "devops-secret-key-change-in-production")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # CORS settings
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database settings
    MYSQL_SERVER: str = os.getenv("MYSQL_SERVER", "localhost")
    MYSQL_USER: str = os.getenv("MYSQL_USER", "root")
    MYSQL_PASSWORD: str = os.getenv("MYSQL_PASSWORD", "")
    MYSQL_DB: str = os.getenv("MYSQL_DB", "devops")
    MYSQL_PORT: str = os.getenv("MYSQL_PORT", "3306")
    # 设置后覆盖 MYSQL_* 拼接出的连接串（测试或本地 sqlite 使用）
    SQLALCHEMY_DATABASE_URI: Optional[str] = os.getenv("SQLALCHEMY_DATABASE_URI")

    # ==========================================
    # 权限配置
    # ==========================================
    # 用户权限码缓存有效期（秒），权限变更时会主动失效
    PERMISSION_CACHE_TTL: int = int(os.getenv("PERMISSION_CACHE_TTL", "300"))

    # ==========================================
    # Kubernetes 配置
    # ==========================================
    # 访问 API Server 的请求超时（秒）
    K8S_REQUEST_TIMEOUT: int = int(os.getenv("K8S_REQUEST_TIMEOUT", "10"))
    # Server-Side Apply 使用的 field manager
    K8S_FIELD_MANAGER: str = os.getenv("K8S_FIELD_MANAGER", "devops-console")
    # 每个资源（集群/Kind/命名空间/名称）保留的 YAML 历史条数
    K8S_YAML_HISTORY_RETENTION: int = int(os.getenv("K8S_YAML_HISTORY_RETENTION", "20"))
    # kubeconfig 加密密钥，未设置时使用 SECRET_KEY
    KUBECONFIG_ENCRYPT_KEY: Optional[str] = os.getenv("KUBECONFIG_ENCRYPT_KEY")

    # 初始管理员账号
    ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "admin123")
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@example.com")

    @property
    def database_url(self) -> str:
        if self.SQLALCHEMY_DATABASE_URI:
            return self.SQLALCHEMY_DATABASE_URI
        return (
            f"mysql+pymysql://{self.MYSQL_USER}:{self.MYSQL_PASSWORD}@"
            f"{self.MYSQL_SERVER}:{self.MYSQL_PORT}/{self.MYSQL_DB}"
        )

    @property
    def kubeconfig_key(self) -> str:
        return self.KUBECONFIG_ENCRYPT_KEY or self.SECRET_KEY

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = 'ignore'  # 忽略.env中未在Settings类中定义的额外字段


settings = Settings()
