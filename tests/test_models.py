"""Tests for core data models."""

import math
from datetime import timedelta

import pytest

from htn_kernel.models import (
    Equals,
    Goal,
    HasEntry,
    HtnSettings,
    Ordered,
    Ordering,
    Plan,
    Requirements,
    SearchNode,
    Task,
    TaskKind,
    Value,
    ValueKind,
    WorldState,
    intern,
)
from htn_kernel.models.values import compare_values, predicate_satisfied


class TestValue:
    def test_of_infers_kind(self):
        assert Value.of(True).kind is ValueKind.BOOLEAN
        assert Value.of("room").kind is ValueKind.SYMBOL
        assert Value.of(3).kind is ValueKind.NUMBER
        assert Value.of(3.5).data == 3.5

    def test_ints_stored_as_floats(self):
        assert Value.of(3) == Value.of(3.0)
        assert isinstance(Value.of(3).data, float)

    def test_symbol_values_are_interned(self):
        assert Value.of("kitchen").data is intern("kitchen")
        assert Value.of("kitchen").raw == "kitchen"

    def test_truth_equality(self):
        bool_true = Value.of(True)
        bool_false = Value.of(False)
        string_empty = Value.of("")
        string_test = Value.of("test")

        assert bool_true == Value.of(True)
        assert bool_false == Value.of(False)
        assert bool_true != bool_false
        assert string_empty == Value.of("")
        assert string_test == Value.of("test")
        assert string_empty != string_test

        for left in (bool_true, bool_false):
            for right in (string_empty, string_test):
                assert left != right
                assert right != left

    def test_cross_kind_never_equal(self):
        assert Value.of(True) != Value.of(1.0)
        assert Value.of(False) != Value.of(0)
        assert Value.of("1") != Value.of(1)
        assert Value.of("true") != Value.of(True)

    def test_nan_equals_itself(self):
        assert Value.of(math.nan) == Value.of(math.nan)
        assert hash(Value.of(math.nan)) == hash(Value.of(math.nan))

    def test_signed_zeros_differ(self):
        assert Value.of(0.0) != Value.of(-0.0)

    def test_hashable(self):
        assert len({Value.of(1), Value.of(1.0), Value.of(True), Value.of("a")}) == 3

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            Value.of([1, 2])

    def test_kind_must_match_data(self):
        with pytest.raises(Exception):
            Value(kind=ValueKind.NUMBER, data=True)


class TestCompareValues:
    def test_numbers(self):
        assert compare_values(Value.of(1), Value.of(2)) is Ordering.LESS
        assert compare_values(Value.of(2), Value.of(1)) is Ordering.GREATER
        assert compare_values(Value.of(2), Value.of(2)) is Ordering.EQUAL

    def test_nan_is_totally_ordered(self):
        assert compare_values(Value.of(math.nan), Value.of(math.inf)) is Ordering.GREATER
        assert compare_values(Value.of(-math.inf), Value.of(math.nan)) is Ordering.LESS

    def test_symbols_order_by_text(self):
        assert compare_values(Value.of("apple"), Value.of("banana")) is Ordering.LESS

    def test_booleans(self):
        assert compare_values(Value.of(False), Value.of(True)) is Ordering.LESS

    def test_cross_kind_not_comparable(self):
        assert compare_values(Value.of(True), Value.of(1)) is None
        assert compare_values(Value.of("a"), Value.of(1)) is None


class TestPredicates:
    def test_has_entry_accepts_anything(self):
        for raw in (True, "x", 0, math.nan):
            assert predicate_satisfied(HasEntry(), Value.of(raw))

    def test_equals(self):
        assert predicate_satisfied(Equals(value=3.1415), Value.of(3.1415))
        assert not predicate_satisfied(Equals(value=3.1415), Value.of(3))

    def test_ordered(self):
        greater = Ordered(ordering=Ordering.GREATER, value=0.0)
        assert predicate_satisfied(greater, Value.of(10))
        assert not predicate_satisfied(greater, Value.of(-10))
        assert not predicate_satisfied(greater, Value.of(0))

    def test_ordered_never_satisfied_across_kinds(self):
        less = Ordered(ordering=Ordering.LESS, value=5)
        assert not predicate_satisfied(less, Value.of(True))
        assert not predicate_satisfied(less, Value.of("a"))

    def test_predicates_are_frozen(self):
        predicate = Equals(value=1)
        with pytest.raises(Exception):
            predicate.value = Value.of(2)


class TestTask:
    def test_primitive(self):
        task = Task.primitive("eat")
        assert task.kind is TaskKind.PRIMITIVE
        assert not task.is_composite
        assert task.decompose() == ["eat"]

    def test_composite_decomposes_in_execution_order(self):
        inner = Task.composite("prepare", [Task.primitive("wash"), Task.primitive("cut")])
        task = Task.composite("cook", [inner, Task.primitive("fry")])
        assert task.is_composite
        assert task.decompose() == ["wash", "cut", "fry"]

    def test_tasks_compare_by_value(self):
        assert Task.primitive("A") == Task.primitive("A")
        assert Task.primitive("A") != Task.primitive("B")
        assert hash(Task.primitive("A")) == hash(Task.primitive("A"))


class TestGoal:
    def test_requirements_from_world_state(self):
        goal = Goal(name="fed", requires=WorldState({"hungry": False}), utility=2.0)
        assert isinstance(goal.requires, Requirements)
        assert goal.requires.validate(WorldState({"hungry": False}))
        assert not goal.requires.validate(WorldState({"hungry": True}))

    def test_requirements_from_mapping(self):
        goal = Goal(name="fed", requires={"hungry": False})
        assert goal.utility == 1.0
        assert goal.requires.validate(WorldState({"hungry": False}))


class TestPlan:
    def test_decompose_tasks_is_a_pop_stack(self):
        # Leaf-to-root: "goto" runs first, then the composite, then "leave".
        plan = Plan(
            tasks=[
                Task.primitive("leave"),
                Task.composite("open", [Task.primitive("unlock"), Task.primitive("push")]),
                Task.primitive("goto"),
            ],
            cost=4.0,
        )
        stack = plan.decompose_tasks()
        executed = []
        while stack:
            executed.append(stack.pop())
        assert executed == ["goto", "unlock", "push", "leave"]

    def test_execution_order(self):
        plan = Plan(tasks=[Task.primitive("b"), Task.primitive("a")], cost=2.0)
        assert [t.name for t in plan.execution_order()] == ["a", "b"]
        assert plan.task_names() == ["b", "a"]


class TestSearchNode:
    def test_nodes_are_immutable(self):
        node = SearchNode(task=Task.primitive("a"), world=WorldState(), cost=1.0, depth=0)
        assert node.parent is None
        with pytest.raises(Exception):
            node.cost = 2.0


class TestHtnSettings:
    def test_defaults(self):
        settings = HtnSettings()
        assert settings.frame_processing_limit is None
        assert settings.node_branch_limit is None
        assert settings.disable_priority_sort is False

    def test_duration_accepts_seconds(self):
        settings = HtnSettings(frame_processing_limit=0.25, node_branch_limit=8)
        assert settings.frame_processing_limit == timedelta(milliseconds=250)

    def test_rejects_negative_depth(self):
        with pytest.raises(Exception):
            HtnSettings(node_branch_limit=-1)
