import pytest
from pydantic import BaseModel
from pydantic import ValidationError

from infra_sizing.enum_utils import describe
from infra_sizing.interface import AppTier
from infra_sizing.interface import CloudProvider
from infra_sizing.interface import ClusterMode
from infra_sizing.interface import CostCategory
from infra_sizing.interface import Distribution
from infra_sizing.interface import DRPattern
from infra_sizing.interface import Environment
from infra_sizing.interface import GrowthPattern
from infra_sizing.interface import HAPattern
from infra_sizing.interface import LoadBalancerOption
from infra_sizing.interface import RecommendationType
from infra_sizing.interface import ServerRole
from infra_sizing.interface import SupportTier
from infra_sizing.interface import Technology
from infra_sizing.interface import WarningSeverity

# Enums whose members carry their own docstrings
DOCUMENTED_ENUMS = [
    Environment,
    ClusterMode,
    AppTier,
    ServerRole,
    HAPattern,
    DRPattern,
    LoadBalancerOption,
    CostCategory,
    GrowthPattern,
]

STRENUM_CLASSES = DOCUMENTED_ENUMS + [
    Distribution,
    Technology,
    CloudProvider,
    SupportTier,
    WarningSeverity,
    RecommendationType,
]


@pytest.mark.parametrize("enum_class", DOCUMENTED_ENUMS)
def test_enums_have_docstrings(enum_class):
    """Every member of a documented enum has its own, distinct docstring

    The @enum_docstrings decorator reads the string literal written under
    each member and makes it that member's ``__doc__``, so it shows up in
    help(), IDE tooltips and cost category descriptions.
    """
    enum_name = enum_class.__name__
    assert enum_class.__doc__, f"{enum_name} must have a class docstring"

    for member in enum_class:
        assert member.__doc__ and member.__doc__.strip(), (
            f"{enum_name}.{member.name} must have a docstring. "
            f"Add a docstring after the member definition:\n"
            f'    {member.name} = "{member.value}"\n'
            f'    """Your documentation here"""'
        )
        assert member.__doc__ != enum_class.__doc__, (
            f"{enum_name}.{member.name} should have its own docstring, "
            f"not inherit the class docstring"
        )

    docs = [member.__doc__ for member in enum_class]
    assert len(set(docs)) == len(docs), f"{enum_name}: docstrings must differ"


@pytest.mark.parametrize("enum_class", DOCUMENTED_ENUMS)
def test_enums_json_schema_includes_member_docstrings(enum_class):
    """Member docstrings become oneOf descriptions in pydantic JSON schemas"""
    enum_name = enum_class.__name__
    Holder = type("Holder", (BaseModel,), {"__annotations__": {"field": enum_class}})

    schema = Holder.model_json_schema()
    assert enum_name in schema["$defs"], f"{enum_name}: Enum not in $defs"
    one_of = schema["$defs"][enum_name]["oneOf"]
    assert len(one_of) == len(enum_class)

    for member in enum_class:
        entries = [entry for entry in one_of if entry["const"] == member.value]
        assert len(entries) == 1, f"{enum_name}.{member.name}: expected one entry"
        assert entries[0]["title"] == member.name
        assert entries[0]["description"] == member.__doc__


def test_describe():
    assert describe(CostCategory.data_center) == "Rack space, power and cooling"
    assert describe(ServerRole.message_queue) == "Message Queue"
    # Members without their own docstring fall back to their name
    assert describe(Distribution.openshift) == "openshift"
    assert describe(SupportTier.none) == "none"
    assert describe(RecommendationType.split_cluster) == "split cluster"


###############################################################################
#                          StrEnum string behaviour                           #
###############################################################################
#
# (str, Enum) formats differently between Python 3.10 and 3.11 (PEP 663).
# StrEnum renders as its value everywhere, so enums can be interpolated into
# labels and messages and used as JSON dictionary keys.


@pytest.mark.parametrize("enum_class", STRENUM_CLASSES)
def test_strenum_renders_as_value(enum_class):
    for member in enum_class:
        assert isinstance(member, str)
        assert f"{member}" == member.value, f"{enum_class.__name__}.{member.name}"
        assert str(member) == member.value
        assert "{}".format(member) == member.value  # pylint: disable=C0209
        assert member == member.value


@pytest.mark.parametrize("enum_class", STRENUM_CLASSES)
def test_strenum_works_as_dict_key_with_string_lookup(enum_class):
    for member in enum_class:
        assert {member: "value"}.get(member.value) == "value"


def test_strenum_pydantic_validation():
    class Holder(BaseModel):
        environment: Environment
        pattern: HAPattern

    model = Holder(environment="prod", pattern="n_plus_1")
    assert model.environment == Environment.prod
    assert model.pattern == HAPattern.n_plus_1

    with pytest.raises(ValidationError):
        Holder(environment="qa", pattern="none")


def test_strenum_pydantic_model_dump_preserves_enum():
    class Holder(BaseModel):
        category: CostCategory
        tier: AppTier

    dumped = Holder(category="labor", tier="xlarge").model_dump()
    assert dumped["category"] is CostCategory.labor
    assert dumped["category"] == "labor"
    assert dumped["tier"] == "xlarge"

    as_json = Holder(category="labor", tier="xlarge").model_dump(mode="json")
    assert as_json == {"category": "labor", "tier": "xlarge"}
