"""Tests for tenant injection into nested-write payloads."""
import copy
from datetime import datetime

import pytest

from tenantflow.analysis.merge import MutationMerger, is_relation_write, merge_tenant_data
from tenantflow.analysis.relationships import SchemaGraph
from tenantflow.analysis.tenant import TenantRelationResolver
from tenantflow.analysis.types import EntityDefinition, FieldDescriptor, TenantConfig
from tenantflow.core.errors import ConfigurationError, EntityNotFoundError

TENANT = {"connect": {"id": "c1"}}


class TestRootLevel:
    """Injection at the root create site."""

    def test_simple_create(self, merger):
        result = merger.merge({"title": "My Todo"}, TENANT, "Todo")
        assert result == {"title": "My Todo", "company": {"connect": {"id": "c1"}}}

    def test_non_mapping_nodes_unchanged(self, merger):
        when = datetime(2026, 1, 1)
        assert merger.merge("text", TENANT, "Todo") == "text"
        assert merger.merge(None, TENANT, "Todo") is None
        assert merger.merge(when, TENANT, "Todo") is when
        items = [{"title": "a"}]
        assert merger.merge(items, TENANT, "Todo") is items

    def test_caller_supplied_relation_wins(self, merger):
        data = {"title": "x", "company": {"connect": {"id": "other"}}}
        result = merger.merge(data, TENANT, "Todo")
        assert result["company"] == {"connect": {"id": "other"}}

    def test_caller_supplied_foreign_key_wins(self, merger):
        result = merger.merge({"name": "t", "company_id": "other"}, TENANT, "Tag")
        assert result == {"name": "t", "company_id": "other"}

    def test_tenant_entity_is_not_scoped(self, merger):
        assert merger.merge({"name": "Acme"}, TENANT, "Company") == {"name": "Acme"}

    def test_unknown_entity(self, merger):
        with pytest.raises(EntityNotFoundError):
            merger.merge({"title": "x"}, TENANT, "Ghost")


class TestPerEntityRelationNames:
    """Each create site receives the tenant relation of its own entity type."""

    def test_nested_create_uses_child_relation(self, merger):
        result = merger.merge({"title": "t", "tags": {"create": {"name": "urgent"}}}, TENANT, "Todo")
        assert result["company"]["connect"]["id"] == "c1"
        tag = result["tags"]["create"]
        assert tag["company_relation"]["connect"]["id"] == "c1"
        assert "company" not in tag

    def test_array_create_preserved(self, merger):
        data = {"title": "t", "tags": {"create": [{"name": "a"}, {"name": "b"}]}}
        result = merger.merge(data, TENANT, "Todo")
        created = result["tags"]["create"]
        assert isinstance(created, list)
        assert len(created) == 2
        assert [item["name"] for item in created] == ["a", "b"]
        assert all(item["company_relation"] == {"connect": {"id": "c1"}} for item in created)

    def test_depth_invariance(self, merger):
        data = {
            "title": "root",
            "list": {
                "create": {
                    "name": "Inbox",
                    "todos": {
                        "create": [{
                            "title": "child",
                            "tags": {"create": {"name": "deep"}},
                            "comments": {"create": {"body": "hi"}},
                        }],
                    },
                },
            },
        }
        result = merger.merge(data, TENANT, "Todo")
        inbox = result["list"]["create"]
        child = inbox["todos"]["create"][0]
        assert inbox["company"] == TENANT
        assert child["company"] == TENANT
        assert child["tags"]["create"]["company_relation"] == TENANT
        assert child["comments"]["create"]["company"] == TENANT

    def test_self_relation(self, merger):
        data = {"name": "root", "children": {"create": [{"name": "leaf", "children": {"create": {"name": "x"}}}]}}
        result = merger.merge(data, TENANT, "Category")
        leaf = result["children"]["create"][0]
        assert leaf["company"] == TENANT
        assert leaf["children"]["create"]["company"] == TENANT


class TestOperations:
    """One case per nested-write operation."""

    def test_create_many(self, merger):
        data = {"tags": {"createMany": {"data": [{"name": "a"}, {"name": "b"}], "skipDuplicates": True}}}
        result = merger.merge(data, TENANT, "Todo")
        create_many = result["tags"]["createMany"]
        assert create_many["skipDuplicates"] is True
        assert [item["company_relation"] for item in create_many["data"]] == [TENANT, TENANT]

    def test_create_many_single_item(self, merger):
        data = {"comments": {"createMany": {"data": {"body": "one"}}}}
        result = merger.merge(data, TENANT, "Todo")
        assert result["comments"]["createMany"]["data"] == {"body": "one", "company": TENANT}

    def test_connect_or_create_with_array_create(self, merger):
        data = {"tags": {"connectOrCreate": {"where": {"id": "t"}, "create": [{"name": "a"}, {"name": "b"}]}}}
        result = merger.merge(data, TENANT, "Todo")
        connect_or_create = result["tags"]["connectOrCreate"]
        assert connect_or_create["where"] == {"id": "t"}
        assert [item["company_relation"] for item in connect_or_create["create"]] == [TENANT, TENANT]

    def test_connect_or_create_array(self, merger):
        data = {"tags": {"connectOrCreate": [
            {"where": {"id": "t1"}, "create": {"name": "a"}},
            {"where": {"id": "t2"}},
        ]}}
        result = merger.merge(data, TENANT, "Todo")
        items = result["tags"]["connectOrCreate"]
        assert items[0]["create"]["company_relation"] == TENANT
        assert items[0]["where"] == {"id": "t1"}
        assert items[1] == {"where": {"id": "t2"}}

    def test_upsert(self, merger):
        data = {"list": {"upsert": {"create": {"name": "New"}, "update": {"name": "Renamed"}}}}
        result = merger.merge(data, TENANT, "Todo")
        upsert = result["list"]["upsert"]
        assert upsert["create"] == {"name": "New", "company": TENANT}
        assert upsert["update"] == {"name": "Renamed", "company": TENANT}

    def test_upsert_array_update(self, merger):
        data = {"tags": {"upsert": [{
            "where": {"id": "t1"},
            "create": {"name": "a"},
            "update": [{"where": {"id": "t1"}, "data": {"name": "b"}}],
        }]}}
        result = merger.merge(data, TENANT, "Todo")
        upsert = result["tags"]["upsert"][0]
        assert upsert["where"] == {"id": "t1"}
        assert upsert["create"]["company_relation"] == TENANT
        assert upsert["update"][0]["data"]["company_relation"] == TENANT
        assert "company_relation" not in upsert["update"][0]

    def test_update_array_injects_inside_data(self, merger):
        data = {"tags": {"update": [{"where": {"id": "t1"}, "data": {"name": "x"}}]}}
        result = merger.merge(data, TENANT, "Todo")
        wrapper = result["tags"]["update"][0]
        assert wrapper["data"]["company_relation"]["connect"]["id"] == "c1"
        assert set(wrapper) == {"where", "data"}
        assert wrapper["where"] == {"id": "t1"}

    def test_update_single_wrapper(self, merger):
        data = {"comments": {"update": {"where": {"id": "m1"}, "data": {"body": "edited"}}}}
        result = merger.merge(data, TENANT, "Todo")
        wrapper = result["comments"]["update"]
        assert "company" not in wrapper
        assert wrapper["data"] == {"body": "edited", "company": TENANT}

    def test_update_plain_data(self, merger):
        result = merger.merge({"list": {"update": {"name": "x"}}}, TENANT, "Todo")
        assert result["list"]["update"] == {"name": "x", "company": TENANT}

    def test_update_data_wrapper_without_where(self, merger):
        result = merger.merge({"list": {"update": {"data": {"name": "x"}}}}, TENANT, "Todo")
        wrapper = result["list"]["update"]
        assert set(wrapper) == {"data"}
        assert wrapper["data"] == {"name": "x", "company": TENANT}

    def test_update_item_without_data_unchanged(self, merger):
        item = {"where": {"id": "t1"}}
        result = merger.merge({"tags": {"update": [item]}}, TENANT, "Todo")
        assert result["tags"]["update"] == [{"where": {"id": "t1"}}]
        assert result["tags"]["update"][0] is item

    def test_single_update_without_data_unchanged(self, merger):
        result = merger.merge({"list": {"update": {"where": {"id": "l1"}}}}, TENANT, "Todo")
        assert result["list"]["update"] == {"where": {"id": "l1"}}

    def test_update_with_nested_create(self, merger):
        data = {"list": {"update": {"todos": {"create": {"title": "inner"}}}}}
        result = merger.merge(data, TENANT, "Todo")
        assert result["list"]["update"]["todos"]["create"]["company"] == TENANT

    @pytest.mark.parametrize("operation", ["connect", "disconnect", "set", "delete", "deleteMany", "updateMany"])
    def test_reference_operations_pass_through(self, merger, operation):
        payload = [{"id": "t1"}, {"id": "t2"}]
        result = merger.merge({"tags": {operation: payload}}, TENANT, "Todo")
        assert result["tags"][operation] is payload

    def test_mixed_operations(self, merger):
        data = {"tags": {"connect": [{"id": "t1"}], "create": {"name": "n"}, "disconnect": {"id": "t2"}}}
        result = merger.merge(data, TENANT, "Todo")
        assert result["tags"]["connect"] == [{"id": "t1"}]
        assert result["tags"]["disconnect"] == {"id": "t2"}
        assert result["tags"]["create"]["company_relation"] == TENANT


class TestPassThrough:
    """Shapes the merger leaves alone."""

    def test_scalar_arrays_keep_identity(self, merger):
        labels = ["a", "b"]
        result = merger.merge({"title": "t", "labels": labels}, TENANT, "Todo")
        assert result["labels"] is labels

    def test_json_column_with_operation_like_key(self, merger):
        metadata = {"update": {"by": "script"}}
        result = merger.merge({"title": "t", "metadata": metadata}, TENANT, "Todo")
        assert result["metadata"] is metadata

    def test_plain_nested_object(self, merger):
        extra = {"color": "red"}
        result = merger.merge({"title": "t", "extra": extra}, TENANT, "Todo")
        assert result["extra"] is extra

    def test_malformed_fragments(self, merger):
        data = {
            "tags": {"create": "oops", "createMany": [{"name": "x"}]},
            "comments": {"connectOrCreate": 3, "upsert": "bad", "update": None},
        }
        result = merger.merge(data, TENANT, "Todo")
        assert result["tags"] == {"create": "oops", "createMany": [{"name": "x"}]}
        assert result["comments"] == {"connectOrCreate": 3, "upsert": "bad", "update": None}

    def test_undeclared_relation_merges_at_parent_context(self, merger):
        result = merger.merge({"drafts": {"create": {"title": "d"}}}, TENANT, "Todo")
        assert result["drafts"]["create"]["company"] == TENANT

    def test_array_on_single_relation_trusts_payload(self, merger):
        result = merger.merge({"list": {"create": [{"name": "a"}]}}, TENANT, "Todo")
        assert result["list"]["create"] == [{"name": "a", "company": TENANT}]


class TestProperties:
    """Purity and idempotence."""

    PAYLOAD = {
        "title": "t",
        "tags": {
            "create": [{"name": "a"}],
            "connectOrCreate": {"where": {"id": "t"}, "create": {"name": "b"}},
            "update": [{"where": {"id": "t1"}, "data": {"name": "x"}}],
        },
        "list": {"upsert": {"create": {"name": "n"}, "update": {"name": "m"}}},
        "comments": {"createMany": {"data": [{"body": "c"}]}},
    }

    def test_idempotent(self, merger):
        once = merger.merge(self.PAYLOAD, TENANT, "Todo")
        twice = merger.merge(once, TENANT, "Todo")
        assert twice == once

    def test_input_not_mutated(self, merger):
        original = copy.deepcopy(self.PAYLOAD)
        tenant = copy.deepcopy(TENANT)
        merger.merge(self.PAYLOAD, tenant, "Todo")
        assert self.PAYLOAD == original
        assert tenant == TENANT

    def test_injected_bindings_are_independent(self, merger):
        result = merger.merge({"title": "t", "tags": {"create": {"name": "a"}}}, TENANT, "Todo")
        assert result["company"] is not result["tags"]["create"]["company_relation"]
        assert result["company"] is not TENANT

    def test_untouched_subtrees_shared(self, merger):
        where = {"id": "t"}
        data = {"tags": {"connectOrCreate": {"where": where, "create": {"name": "b"}}}}
        result = merger.merge(data, TENANT, "Todo")
        assert result["tags"]["connectOrCreate"]["where"] is where


class TestConfigurationErrors:
    """Resolution failures surface from nested create sites."""

    def test_ambiguous_nested_entity(self, graph):
        data = {"name": "Acme", "outgoingTransfers": {"create": {"toCompany": {"connect": {"id": "c2"}}}}}
        merger = MutationMerger(graph, TenantRelationResolver(graph, TenantConfig(tenant_entity="Company")))
        with pytest.raises(ConfigurationError) as exc_info:
            merger.merge(data, TENANT, "Company")
        assert exc_info.value.entity == "Transfer"

    def test_reference_only_ops_never_resolve(self, merger):
        data = {"name": "Acme", "outgoingTransfers": {"connect": {"id": "tr1"}}}
        assert merger.merge(data, TENANT, "Company") == data

    def test_exempt_nested_entity(self, graph):
        config = TenantConfig(tenant_entity="Company", exempt_entities=frozenset({"Transfer"}))
        data = {"outgoingTransfers": {"create": {"toCompany": {"connect": {"id": "c2"}}}}}
        result = merge_tenant_data(graph, config, data, TENANT, "Company")
        assert result == data


def test_is_relation_write():
    assert is_relation_write({"create": {}})
    assert is_relation_write({"set": []})
    assert not is_relation_write({"name": "x"})
    assert not is_relation_write([{"create": {}}])


def test_entity_without_tenant_relation(merger):
    with pytest.raises(ConfigurationError) as exc_info:
        merger.merge({"code": "NZ"}, TENANT, "Country")
    assert exc_info.value.tenant_entity == "Company"


def test_update_of_entity_with_data_column():
    graph = SchemaGraph.from_entities([
        EntityDefinition(name="Company", fields=(FieldDescriptor(name="id"),)),
        EntityDefinition(name="Blob", fields=(
            FieldDescriptor(name="id"),
            FieldDescriptor(name="data"),
            FieldDescriptor(name="companyId"),
            FieldDescriptor(name="company", is_relation=True, related_entity="Company",
                            owned_foreign_keys=("companyId",)),
        )),
        EntityDefinition(name="Folder", fields=(
            FieldDescriptor(name="id"),
            FieldDescriptor(name="blob", is_relation=True, related_entity="Blob"),
        )),
    ])
    config = TenantConfig(tenant_entity="Company", exempt_entities=frozenset({"Folder"}))

    result = merge_tenant_data(graph, config, {"blob": {"update": {"data": {"k": 1}}}}, TENANT, "Folder")

    assert result["blob"]["update"] == {"data": {"k": 1}, "company": TENANT}
