"""YAML 文档处理测试"""
import pytest
import yaml

from devops.core.errors import ValidationError
from devops.k8s import documents

MULTI_DOC = """
apiVersion: v1
kind: ConfigMap
metadata:
  name: app-config
  namespace: dev
  uid: 1234
  resourceVersion: "99"
  creationTimestamp: "2024-01-01T00:00:00Z"
  managedFields: []
data:
  key: value
status:
  phase: Active
---
---
apiVersion: v1
kind: List
items:
  - apiVersion: v1
    kind: Service
    metadata:
      name: web
  - apiVersion: apps/v1
    kind: Deployment
    metadata:
      name: web
"""


class TestDecode:

    def test_skips_empty_documents_and_expands_lists(self):
        objects = documents.expand_lists(documents.decode_documents(MULTI_DOC))
        assert [(o["kind"], o["metadata"]["name"]) for o in objects] == [
            ("ConfigMap", "app-config"),
            ("Service", "web"),
            ("Deployment", "web"),
        ]

    def test_json_input(self):
        objects = documents.decode_documents('{"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": "x"}}')
        assert objects[0]["kind"] == "Namespace"

    def test_typed_list_kind_is_expanded(self):
        doc = {"apiVersion": "v1", "kind": "ConfigMapList", "items": [
            {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "a"}},
        ]}
        assert documents.expand_lists([doc])[0]["metadata"]["name"] == "a"

    def test_kind_ending_in_list_without_items_is_kept(self):
        doc = {"apiVersion": "example.com/v1", "kind": "AllowList", "metadata": {"name": "a"}}
        assert documents.expand_lists([doc]) == [doc]

    def test_syntax_error(self):
        with pytest.raises(ValidationError):
            documents.decode_documents("kind: [unclosed")

    def test_scalar_document_is_rejected(self):
        with pytest.raises(ValidationError):
            documents.decode_documents("just a string")


class TestObjectKey:

    def test_complete_object(self):
        obj = {"apiVersion": "apps/v1", "kind": "Deployment", "metadata": {"name": "web"}}
        assert documents.object_key(obj) == ("apps/v1", "Deployment", "web")

    @pytest.mark.parametrize("obj", [
        {"apiVersion": "v1"},
        {"kind": "ConfigMap", "metadata": {"name": "x"}},
        {"apiVersion": "v1", "kind": "ConfigMap"},
        {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {}},
    ])
    def test_missing_fields(self, obj):
        with pytest.raises(ValidationError):
            documents.object_key(obj)

    def test_parse_objects_rejects_empty_input(self):
        with pytest.raises(ValidationError):
            documents.parse_objects("---\n---\n")

    def test_parse_objects_validates_every_object(self):
        text = "apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: ok\n---\napiVersion: v1\n"
        with pytest.raises(ValidationError):
            documents.parse_objects(text)


class TestSanitize:

    def test_strips_status_and_server_fields(self):
        obj = documents.decode_documents(MULTI_DOC)[0]
        clean = documents.sanitize(obj)

        assert "status" not in clean
        assert set(clean["metadata"]) == {"name", "namespace"}
        assert clean["data"] == {"key": "value"}
        # 原对象不变
        assert obj["metadata"]["uid"] == 1234

    def test_namespace_helpers(self):
        obj = {"kind": "ConfigMap"}
        assert documents.get_namespace(obj) == ""
        documents.set_namespace(obj, "staging")
        assert obj["metadata"]["namespace"] == "staging"
        documents.strip_namespace(obj)
        assert obj["metadata"] == {}


class TestFormat:

    def test_documents_are_joined_with_separator(self):
        formatted = documents.format_documents(MULTI_DOC)

        parts = formatted.split("---\n")
        assert len(parts) == 3
        first = yaml.safe_load(parts[0])
        assert first["metadata"] == {"name": "app-config", "namespace": "dev"}
        assert [yaml.safe_load(p)["kind"] for p in parts] == ["ConfigMap", "Service", "Deployment"]

    def test_single_document_has_no_separator(self):
        formatted = documents.format_documents("apiVersion: v1\nkind: Namespace\nmetadata: {name: prod}\n")
        assert "---" not in formatted
        assert yaml.safe_load(formatted) == {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": "prod"}}

    def test_empty_input(self):
        with pytest.raises(ValidationError):
            documents.format_documents("")
