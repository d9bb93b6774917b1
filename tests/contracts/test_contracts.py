"""Tests for engine contracts and the failure taxonomy.

These tests verify that contracts are enforced at stage boundaries and that
failure kinds carry the information callers need.
"""

import pytest

pytestmark = pytest.mark.unit

from atmoderive.contracts import (
    ContractViolation,
    CyclicDependency,
    DerivationError,
    DuplicateUnit,
    ExecutionFailure,
    ExecutionMode,
    MissingIngredientMetadata,
    NonlinearOnlyRecipe,
    UnknownUnit,
    UnresolvableVariable,
    assert_fields_present,
    assert_plan_valid,
    require,
)
from atmoderive.core.field_store import FieldStore
from atmoderive.pipeline.plan import Plan
from tests.helpers.fake_fields import make_fields_ds, make_recipe


class TestRequire:
    """Test the base require() helper."""

    def test_require_passes_when_true(self):
        require(True, "never raised")

    def test_require_raises_contract_violation(self):
        with pytest.raises(ContractViolation, match="broken"):
            require(False, "broken")


class TestFieldContract:
    """Test field presence contract."""

    def test_passes_when_all_fields_exist(self):
        store = FieldStore(make_fields_ds(theta=[[300.0]], exner=[[0.95]]))
        assert_fields_present(store, ["theta", "exner"], "test")

    def test_reports_every_missing_field(self):
        """All missing names appear in one message."""
        store = FieldStore(make_fields_ds(theta=[[300.0]]))
        with pytest.raises(ContractViolation, match=r"missing \['exner', 'qsat'\]"):
            assert_fields_present(store, ["theta", "exner", "qsat"], "recipe 'X'")


class TestPlanContract:
    """Test plan validity contract on hand-built plans."""

    def setup_method(self):
        self.a = make_recipe("MakeA", "a", ["x"])()
        self.b = make_recipe("MakeB", "b", ["a"])()

    def test_valid_plan_passes(self):
        plan = Plan((self.a, self.b), frozenset({"x"}), ("b",))
        assert_plan_valid(plan)

    def test_ingredient_after_use_fails(self):
        """A recipe running before its ingredient is produced is rejected."""
        plan = Plan((self.b, self.a), frozenset({"x"}), ("b",))
        with pytest.raises(ContractViolation, match="MakeB"):
            assert_plan_valid(plan)

    def test_duplicate_product_fails(self):
        other = make_recipe("OtherA", "a", ["x"])()
        plan = Plan((self.a, other), frozenset({"x"}), ("a",))
        with pytest.raises(ContractViolation, match="produced twice"):
            assert_plan_valid(plan)

    def test_product_already_available_fails(self):
        plan = Plan((self.a,), frozenset({"x", "a"}), ("a",))
        with pytest.raises(ContractViolation, match="already available"):
            assert_plan_valid(plan)

    def test_unmet_request_fails(self):
        plan = Plan((self.a,), frozenset({"x"}), ("b",))
        with pytest.raises(ContractViolation, match="not produced"):
            assert_plan_valid(plan)

    def test_nonlinear_recipe_in_linear_plan_fails(self):
        diag = make_recipe("Diag", "a", ["x"], linear=False)()
        plan = Plan((diag,), frozenset({"x"}), ("a",), ExecutionMode.TL)
        with pytest.raises(ContractViolation, match="linear plan"):
            assert_plan_valid(plan)


class TestFailureTaxonomy:
    """Test failure kinds and their messages."""

    @pytest.mark.parametrize("exc", [
        DuplicateUnit("A"),
        UnknownUnit("A"),
        UnresolvableVariable("v"),
        CyclicDependency("v", ["v"]),
        NonlinearOnlyRecipe("A", ExecutionMode.TL),
        MissingIngredientMetadata("A", "height", "boundary_layer_index"),
        ExecutionFailure("A", "v"),
    ])
    def test_all_derive_from_derivation_error(self, exc):
        assert isinstance(exc, DerivationError)
        assert not isinstance(exc, ContractViolation)

    def test_cycle_path(self):
        """The cycle starts and ends at the repeated variable."""
        exc = CyclicDependency("b", ["top", "b", "c"])
        assert exc.cycle == ("b", "c", "b")
        assert "top -> b -> c -> b" in str(exc)

    def test_unresolvable_without_cookbook_entry(self):
        exc = UnresolvableVariable("foo")
        assert exc.attempts == ()
        assert "not in cookbook" in str(exc)

    def test_unresolvable_lists_attempts(self):
        exc = UnresolvableVariable("foo", [("R1", "bad"), ("R2", "worse")])
        assert "R1: bad" in str(exc)
        assert "R2: worse" in str(exc)

    def test_unknown_unit_lists_known_names(self):
        exc = UnknownUnit("Nope", ["B", "A"])
        assert "['A', 'B']" in str(exc)

    def test_mode_accepts_strings(self):
        exc = ExecutionFailure("A", "v", "ad")
        assert exc.mode is ExecutionMode.AD
        assert "AD mode" in str(exc)
        assert ExecutionMode("tl").is_linear
        assert not ExecutionMode.NL.is_linear
