"""Tests for plan execution: setup lifecycle, failures, modes and stages."""

import numpy as np
import pytest

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]

from atmoderive.contracts import (
    ExecutionFailure,
    ExecutionMode,
    MissingTrajectory,
    NonlinearOnlyRecipe,
)
from atmoderive.core.field_store import FieldStore
from atmoderive.pipeline.cookbook import Cookbook
from atmoderive.pipeline.executor import Executor
from atmoderive.pipeline.resolver import Resolver
from atmoderive.schemas import DEFAULT_COOKBOOK
from tests.helpers.fake_fields import make_fields_ds, make_recipe, make_state_ds


def build(registry, cookbook, *recipe_classes):
    for recipe_cls in recipe_classes:
        registry.add(recipe_cls)
    return Resolver(registry, Cookbook(cookbook))


class TestSetupLifecycle:
    """Setup runs once per recipe instance, before the first execute."""

    def test_setup_called_once(self, empty_registry):
        recipe_cls = make_recipe("NeedsSetup", "a", ["x"], setup=True)
        resolver = build(empty_registry, {"a": ["NeedsSetup"]}, recipe_cls)
        plan = resolver.resolve(["a"], ["x"])
        executor = Executor()

        for _ in range(3):
            ds = make_fields_ds(x=[1.0, 2.0])
            executor.run(plan, "nl", FieldStore(ds))

        assert recipe_cls.setups == ["NeedsSetup"]
        assert recipe_cls.calls == [("nl", "NeedsSetup")] * 3

    def test_setup_failure_raises(self, empty_registry):
        recipe_cls = make_recipe("BadSetup", "a", ["x"], setup=True)
        recipe_cls.setup = lambda self, fields: False
        resolver = build(empty_registry, {"a": ["BadSetup"]}, recipe_cls)
        plan = resolver.resolve(["a"], ["x"])

        with pytest.raises(ExecutionFailure, match="BadSetup"):
            Executor().run(plan, ExecutionMode.NL, FieldStore(make_fields_ds(x=[1.0])))


class TestNonlinear:
    """Forward execution and failure handling."""

    def test_products_written_in_order(self, empty_registry):
        resolver = build(
            empty_registry,
            {"a": ["MakeA"], "b": ["MakeB"]},
            make_recipe("MakeA", "a", ["x"]),
            make_recipe("MakeB", "b", ["a"]),
        )
        plan = resolver.resolve(["b"], ["x"])
        ds = make_fields_ds(x=[1.0, 2.0])

        derived = Executor().run(plan, "nl", FieldStore(ds))

        assert derived == ["a", "b"]
        np.testing.assert_array_equal(ds["a"].values.ravel(), [2.0, 3.0])
        np.testing.assert_array_equal(ds["b"].values.ravel(), [3.0, 4.0])

    def test_failure_aborts_remaining_plan(self, empty_registry):
        """Earlier writes stay, later recipes never run."""
        first = make_recipe("MakeA", "a", ["x"])
        failing = make_recipe("FailB", "b", ["a"], result=False)
        last = make_recipe("MakeC", "c", ["b"])
        resolver = build(empty_registry, {"a": ["MakeA"], "b": ["FailB"], "c": ["MakeC"]},
                         first, failing, last)
        plan = resolver.resolve(["c"], ["x"])
        ds = make_fields_ds(x=[1.0])

        with pytest.raises(ExecutionFailure) as exc_info:
            Executor().run(plan, "nl", FieldStore(ds))

        assert exc_info.value.recipe == "FailB"
        assert exc_info.value.variable == "b"
        assert ds["a"].values.ravel()[0] == 2.0
        assert "c" not in ds
        assert last.calls == []

    def test_existing_product_keeps_attrs(self, empty_registry):
        resolver = build(empty_registry, {"a": ["MakeA"]}, make_recipe("MakeA", "a", ["x"]))
        plan = resolver.resolve(["a"], ["x"])
        ds = make_fields_ds(x=[1.0], a=[0.0], attrs={"a": {"units": "K"}})

        Executor().run(plan, "nl", FieldStore(ds))

        assert ds["a"].attrs == {"units": "K"}
        assert ds["a"].values.ravel()[0] == 2.0


class TestLinearModes:
    """TL/AD preconditions and the adjoint zeroing convention."""

    @pytest.fixture
    def linear(self, empty_registry):
        resolver = build(
            empty_registry,
            {"a": ["MakeA"], "b": ["MakeB"]},
            make_recipe("MakeA", "a", ["x", "y"]),
            make_recipe("MakeB", "b", ["a"]),
        )
        return resolver.resolve(["b"], ["x", "y"], "tl")

    def test_tl_without_trajectory_store(self, linear):
        increments = FieldStore(make_fields_ds(x=[1.0], y=[1.0]))
        with pytest.raises(MissingTrajectory):
            Executor().run(linear, "tl", increments)

    def test_ad_without_prior_pass(self, linear):
        trajectory = FieldStore(make_fields_ds(x=[1.0], y=[1.0]))
        sensitivities = FieldStore(make_fields_ds(b=[1.0]))
        with pytest.raises(MissingTrajectory, match="without a prior NL/TL pass"):
            Executor().run(linear, "ad", sensitivities, trajectory)

    def test_ad_accumulates_and_zeroes_products(self, linear):
        executor = Executor()
        trajectory = FieldStore(make_fields_ds(x=[1.0], y=[2.0]))
        executor.run(linear, "nl", trajectory)
        assert executor.has_trajectory(linear)

        ds = make_fields_ds(b=[3.0], x=[10.0])
        executor.run(linear, "ad", FieldStore(ds), trajectory)

        # b = 1 + a, a = 1 + x + y: both ingredients receive b's sensitivity
        assert ds["x"].values.ravel()[0] == 13.0
        assert ds["y"].values.ravel()[0] == 3.0
        assert ds["a"].values.ravel()[0] == 0.0
        assert ds["b"].values.ravel()[0] == 0.0

    def test_ad_runs_in_reverse(self, empty_registry):
        make_a = make_recipe("MakeA", "a", ["x"])
        make_b = make_recipe("MakeB", "b", ["a"])
        resolver = build(empty_registry, {"a": ["MakeA"], "b": ["MakeB"]}, make_a, make_b)
        plan = resolver.resolve(["b"], ["x"], "ad")
        executor = Executor()
        trajectory = FieldStore(make_fields_ds(x=[1.0]))
        executor.run(plan, "nl", trajectory)

        executor.run(plan, "ad", FieldStore(make_fields_ds(b=[1.0])), trajectory)

        assert make_b.calls[-1] == ("ad", "MakeB")
        assert make_a.calls[-1] == ("ad", "MakeA")
        assert make_a.calls.index(("ad", "MakeA")) == 1

    def test_nonlinear_only_rejected_before_any_write(self, registry):
        resolver = Resolver(registry, Cookbook(DEFAULT_COOKBOOK))
        plan = resolver.resolve(["relative_humidity"], ["specific_humidity", "qsat"])
        ds = make_fields_ds(specific_humidity=[0.01], qsat=[0.02])
        store = FieldStore(ds)

        with pytest.raises(NonlinearOnlyRecipe, match="RelativeHumidity_A"):
            Executor().run(plan, "tl", store, store)
        assert "relative_humidity" not in ds


class TestStageParallelism:
    """Threaded stages give the same result as serial execution."""

    @pytest.mark.parametrize("mode", ["nl", "tl", "ad"])
    def test_threaded_matches_serial(self, registry, mode):
        requested = ["virtual_temperature", "potential_temperature", "air_pressure_thickness"]
        results = []
        for workers in (1, 4):
            resolver = Resolver(registry, Cookbook(DEFAULT_COOKBOOK))
            executor = Executor(max_workers=workers)
            state = make_state_ds()
            plan = resolver.resolve(requested, list(state.data_vars), mode)
            trajectory = FieldStore(state)
            executor.run(plan, "nl", trajectory)

            if mode == "nl":
                results.append(state)
                continue

            if mode == "tl":
                ds = make_state_ds(seed=5)
            else:
                ds = make_fields_ds(
                    virtual_temperature=np.ones((6, 4)),
                    potential_temperature=np.full((6, 4), 2.0),
                    air_pressure_thickness=np.full((6, 4), 3.0),
                )
            executor.run(plan, mode, FieldStore(ds), trajectory)
            results.append(ds)

        serial, threaded = results
        for name in serial.data_vars:
            np.testing.assert_allclose(threaded[name].values, serial[name].values, rtol=1e-14)

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            Executor(max_workers=0)
