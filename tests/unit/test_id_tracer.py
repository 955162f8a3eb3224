"""Tests for identifier provenance tracing."""

from __future__ import annotations

import pytest

from gosyntax.facts import ModuleFacts
from schemaorder.config import TracerSettings
from schemaorder.id_tracer import IdFieldList, trace_id_fields
from schemaorder.resolution import ResolutionState
from tests.test_helpers.go_sources import FactsBuilder, go_source

_UNTYPED = """
func resourceExampleCreate(d *schema.ResourceData, meta interface{}) error {
	subscriptionId := meta.(*clients.Client).Account.SubscriptionId
	name := d.Get("name").(string)
	resourceGroup := d.Get("resource_group_name").(string)

	id := parse.NewExampleID(subscriptionId, resourceGroup, name)
	if err := create(id); err != nil {
		return err
	}

	d.SetId(COMMIT)
	return resourceExampleRead(d, meta)
}
"""

_TYPED = """
type ExampleModel struct {
	Name          string `tfschema:"name"`
	ResourceGroup string `tfschema:"resource_group_name"`
	SubnetId      string `tfschema:"subnet_id"`
}

type ExampleResource struct{}

func (r ExampleResource) ModelObject() interface{} {
	return &ExampleModel{}
}

func (r ExampleResource) Create() sdk.ResourceFunc {
	return sdk.ResourceFunc{
		Func: func(ctx context.Context, metadata sdk.ResourceMetaData) error {
			subscriptionId := metadata.Client.Account.SubscriptionId
			var model ExampleModel
			if err := metadata.Decode(&model); err != nil {
				return err
			}
			BODY
			return nil
		},
	}
}
"""


def _functions(facts: ModuleFacts, name: str) -> tuple:
    if name in facts.package.functions:
        return (facts.package.functions[name],)
    return facts.package.methods[name]


def _trace(facts: ModuleFacts, name: str, settings: TracerSettings | None = None):
    return trace_id_fields(_functions(facts, name), facts, settings)


@pytest.mark.parametrize("commit", ["id.ID()", "id.String()", "id"])
def test_untyped_commit_forms(go_facts: FactsBuilder, commit: str) -> None:
    """Resolve a constructor committed directly or through its string form."""
    facts = go_facts(go_source(_UNTYPED.replace("COMMIT", commit)))
    result = _trace(facts, "resourceExampleCreate")
    assert result.unwrap() == IdFieldList(fields=("resource_group_name", "name"))
    assert result.unwrap().most_specific_first == ("name", "resource_group_name")


def test_inline_reads_and_type_assertions(go_facts: FactsBuilder) -> None:
    """Read fields passed inline and through comma-ok accessors."""
    body = """
    func resourceExampleCreate(d *schema.ResourceData, meta interface{}) error {
    	subscriptionId := meta.(*clients.Client).Account.SubscriptionId
    	v, ok := d.GetOk("parent_name")
    	if !ok {
    		return fmt.Errorf("parent_name is required")
    	}
    	id := parse.NewChildID(subscriptionId, v.(string), d.Get("name").(string))
    	d.SetId(id.ID())
    	return nil
    }
    """
    facts = go_facts(go_source(body))
    result = _trace(facts, "resourceExampleCreate")
    assert result.unwrap().fields == ("parent_name", "name")


def test_typed_resource_reads_model_fields(go_facts: FactsBuilder) -> None:
    """Map model struct fields to schema names through their tags."""
    source = _TYPED.replace(
        "BODY",
        "id := parse.NewExampleID(subscriptionId, model.ResourceGroup, model.Name)\n"
        "\t\t\tmetadata.SetID(id)",
    )
    facts = go_facts(go_source(source))
    result = _trace(facts, "Create")
    assert result.unwrap().fields == ("resource_group_name", "name")
    assert "name" in result.unwrap()
    assert "location" not in result.unwrap()


def test_parent_identifier_contributes_its_source_field(go_facts: FactsBuilder) -> None:
    """Members of a parsed parent ID collapse into the field it was parsed from."""
    source = _TYPED.replace(
        "BODY",
        "subnetId, err := commonids.ParseSubnetID(model.SubnetId)\n"
        "\t\t\tif err != nil {\n\t\t\t\treturn err\n\t\t\t}\n"
        "\t\t\tid := parse.NewEndpointID(subnetId.SubscriptionId, subnetId.ResourceGroupName,"
        " subnetId.VirtualNetworkName, subnetId.SubnetName, model.Name)\n"
        "\t\t\tmetadata.SetID(id)",
    )
    facts = go_facts(go_source(source))
    result = _trace(facts, "Create")
    assert result.unwrap().fields == ("subnet_id", "name")
    assert result.unwrap().most_specific_first == ("name", "subnet_id")


def test_resource_data_member_is_a_receiver(go_facts: FactsBuilder) -> None:
    """Treat ``metadata.ResourceData`` like ``d`` for reads and commits."""
    source = _TYPED.replace(
        "BODY",
        'name := metadata.ResourceData.Get("name").(string)\n'
        "\t\t\tid := parse.NewExampleID(subscriptionId, name)\n"
        "\t\t\tmetadata.ResourceData.SetId(id.ID())",
    )
    facts = go_facts(go_source(source))
    assert _trace(facts, "Create").unwrap().fields == ("name",)


def test_tenant_scope_value_is_dropped(go_facts: FactsBuilder) -> None:
    """Drop a leading scope argument that is not a schema field."""
    body = """
    func resourceExampleCreate(d *schema.ResourceData, meta interface{}) error {
    	tenantId := meta.(*clients.Client).Account.TenantId
    	id := parse.NewGroupID(tenantId, d.Get("name").(string))
    	d.SetId(id.ID())
    	return nil
    }
    """
    facts = go_facts(go_source(body))
    assert _trace(facts, "resourceExampleCreate").unwrap().fields == ("name",)


def test_scope_value_bound_to_abbreviated_variable(go_facts: FactsBuilder) -> None:
    """Drop a scope argument whose variable was read from a subscription member."""
    body = """
    func resourceFooCreate(d *schema.ResourceData, meta interface{}) error {
    	subId := meta.(*clients.Client).Account.SubscriptionId
    	rg := d.Get("resource_group_name").(string)
    	name := d.Get("name").(string)
    	id := parse.NewFooID(subId, rg, name)
    	d.SetId(id.ID())
    	return nil
    }
    """
    facts = go_facts(go_source(body))
    result = _trace(facts, "resourceFooCreate")
    assert result.unwrap().fields == ("resource_group_name", "name")


def test_untraceable_parent_identifier_is_unresolvable(go_facts: FactsBuilder) -> None:
    """Drop a commit whose parsed parent ID came from an API response."""
    body = """
    func resourceEndpointCreate(d *schema.ResourceData, meta interface{}) error {
    	resp, err := client.Get(ctx)
    	if err != nil {
    		return err
    	}
    	parentId, err := commonids.ParseSubnetID(*resp.ID)
    	if err != nil {
    		return err
    	}
    	name := d.Get("name").(string)
    	id := parse.NewEndpointID(parentId.SubscriptionId, parentId.ResourceGroupName, name)
    	d.SetId(id.ID())
    	return nil
    }
    """
    facts = go_facts(go_source(body))
    assert _trace(facts, "resourceEndpointCreate").state is ResolutionState.UNRESOLVABLE


def test_partial_composition_is_unresolvable(go_facts: FactsBuilder) -> None:
    """Drop a commit with any unresolved component rather than guessing."""
    body = """
    func resourceExampleCreate(d *schema.ResourceData, meta interface{}) error {
    	parent := lookupParent(meta)
    	id := parse.NewChildID(parent, d.Get("name").(string))
    	d.SetId(id.ID())
    	return nil
    }
    """
    facts = go_facts(go_source(body))
    assert _trace(facts, "resourceExampleCreate").state is ResolutionState.UNRESOLVABLE


def test_api_response_values_are_not_followed(go_facts: FactsBuilder) -> None:
    """Identifiers built from API responses cannot be traced."""
    body = """
    func dataSourceExampleRead(d *schema.ResourceData, meta interface{}) error {
    	resp, err := client.Get(ctx, d.Get("name").(string))
    	if err != nil {
    		return err
    	}
    	d.SetId(*resp.ID)
    	return nil
    }
    """
    facts = go_facts(go_source(body), name="example_data_source.go")
    result = _trace(facts, "dataSourceExampleRead")
    assert result.state is ResolutionState.UNRESOLVABLE
    assert result.reason


def test_no_functions_is_not_applicable(go_facts: FactsBuilder) -> None:
    """Without create or read functions there is nothing to trace."""
    facts = go_facts(go_source("var fields = map[string]*schema.Schema{}"))
    result = trace_id_fields((), facts)
    assert result.state is ResolutionState.NOT_APPLICABLE


def test_fields_accumulate_across_functions(go_facts: FactsBuilder) -> None:
    """Merge commits of several functions without duplicates."""
    body = """
    func createOne(d *schema.ResourceData) {
    	group := d.Get("resource_group_name").(string)
    	id := parse.NewExampleID(subscriptionId, group, d.Get("name").(string))
    	d.SetId(id.ID())
    }

    func createTwo(d *schema.ResourceData) {
    	group := d.Get("resource_group_name").(string)
    	id := parse.NewExampleID(subscriptionId, group, d.Get("zone").(string))
    	d.SetId(id.ID())
    }
    """
    facts = go_facts(go_source(body))
    functions = (facts.package.functions["createOne"], facts.package.functions["createTwo"])
    result = trace_id_fields(functions, facts)
    assert result.unwrap().fields == ("resource_group_name", "name", "zone")


def test_custom_commit_method(go_facts: FactsBuilder) -> None:
    """Recognize configured commit methods only."""
    source = go_source(_UNTYPED.replace("COMMIT", "id.ID()").replace("SetId", "StoreId"))
    facts = go_facts(source)
    assert _trace(facts, "resourceExampleCreate").state is ResolutionState.UNRESOLVABLE
    settings = TracerSettings(commit_methods=("StoreId",))
    assert _trace(facts, "resourceExampleCreate", settings).unwrap().fields == (
        "resource_group_name",
        "name",
    )
