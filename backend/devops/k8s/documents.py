"""
Kubernetes 对象文档处理

文档保持为普通 dict（不对 Kind 建模），通过字段路径访问：
解码多文档 YAML/JSON、展开 List、校验 GVK 与名称、清理服务端字段、重新编码。
"""

import copy
from typing import Any, Dict, Iterable, List, Tuple

import yaml

from devops.core.errors import ValidationError

Document = Dict[str, Any]

# 由 API Server 维护的 metadata 字段，提交前移除
SERVER_MANAGED_METADATA = (
    "creationTimestamp",
    "resourceVersion",
    "uid",
    "generation",
    "selfLink",
    "managedFields",
)

DOCUMENT_SEPARATOR = "---\n"


def get_field(obj: Document, *path: str, default: Any = None) -> Any:
    """按字段路径取值，中间任一层不是 dict 时返回 default"""
    current: Any = obj
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def set_field(obj: Document, value: Any, *path: str) -> None:
    current = obj
    for key in path[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[path[-1]] = value


def remove_field(obj: Document, *path: str) -> None:
    parent = get_field(obj, *path[:-1]) if len(path) > 1 else obj
    if isinstance(parent, dict):
        parent.pop(path[-1], None)


def decode_documents(text: str) -> List[Document]:
    """
    解码一个或多个 YAML/JSON 文档，跳过空文档

    Raises:
        ValidationError: 语法错误或文档不是对象
    """
    try:
        raw_docs = list(yaml.safe_load_all(text or ""))
    except yaml.YAMLError as e:
        raise ValidationError(f"YAML 解析失败: {e}") from e

    docs = []
    for index, doc in enumerate(raw_docs):
        if doc is None or doc == {}:
            continue
        if not isinstance(doc, dict):
            raise ValidationError(f"第 {index + 1} 个文档不是对象")
        docs.append(doc)
    return docs


def is_list_kind(obj: Document) -> bool:
    kind = obj.get("kind")
    return isinstance(kind, str) and kind.endswith("List") and isinstance(obj.get("items"), list)


def expand_lists(docs: Iterable[Document]) -> List[Document]:
    """将 kind: List（以及 XxxList）展开为其中的对象"""
    objects = []
    for doc in docs:
        if is_list_kind(doc):
            for item in doc["items"]:
                if not isinstance(item, dict):
                    raise ValidationError(f"{doc['kind']} 中包含非对象元素")
                objects.append(item)
        else:
            objects.append(doc)
    return objects


def object_key(obj: Document) -> Tuple[str, str, str]:
    """
    返回 (apiVersion, kind, name)

    Raises:
        ValidationError: 缺少 apiVersion、kind 或 metadata.name
    """
    api_version = obj.get("apiVersion")
    kind = obj.get("kind")
    name = get_field(obj, "metadata", "name")
    if not api_version or not isinstance(api_version, str):
        raise ValidationError(f"对象缺少 apiVersion (kind={kind or '?'})")
    if not kind or not isinstance(kind, str):
        raise ValidationError(f"对象缺少 kind (apiVersion={api_version})")
    if not name or not isinstance(name, str):
        raise ValidationError(f"{kind} 缺少 metadata.name")
    return api_version, kind, name


def describe(obj: Document) -> str:
    return f"{obj.get('kind', '?')}/{get_field(obj, 'metadata', 'name', default='?')}"


def get_namespace(obj: Document) -> str:
    return get_field(obj, "metadata", "namespace", default="") or ""


def set_namespace(obj: Document, namespace: str) -> None:
    set_field(obj, namespace, "metadata", "namespace")


def strip_namespace(obj: Document) -> None:
    remove_field(obj, "metadata", "namespace")


def sanitize(obj: Document) -> Document:
    """返回去掉 status 和服务端维护字段后的副本"""
    clean = copy.deepcopy(obj)
    clean.pop("status", None)
    metadata = clean.get("metadata")
    if isinstance(metadata, dict):
        for key in SERVER_MANAGED_METADATA:
            metadata.pop(key, None)
    return clean


def dump_document(obj: Document) -> str:
    return yaml.safe_dump(obj, default_flow_style=False, sort_keys=False, allow_unicode=True)


def format_documents(text: str) -> str:
    """
    解码 -> 展开 -> 清理 -> 重新编码，不访问集群

    Raises:
        ValidationError: 输入无法解析或不包含任何对象
    """
    objects = expand_lists(decode_documents(text))
    if not objects:
        raise ValidationError("YAML 中没有可用的对象")
    return DOCUMENT_SEPARATOR.join(dump_document(sanitize(obj)) for obj in objects)


def parse_objects(text: str) -> List[Document]:
    """解码并校验所有对象；任何一个不合法都会在提交前中止整批"""
    objects = expand_lists(decode_documents(text))
    if not objects:
        raise ValidationError("YAML 中没有可用的对象")
    for obj in objects:
        object_key(obj)
    return objects


def split_api_version(api_version: str) -> Tuple[str, str]:
    """apps/v1 -> ("apps", "v1")；v1 -> ("", "v1")"""
    if "/" in api_version:
        group, version = api_version.split("/", 1)
        return group, version
    return "", api_version

