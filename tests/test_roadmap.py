"""
Tests for the construction roadmap step catalog and its state transitions.
"""

import dataclasses

import pytest

from roadmap import (
    ROADMAP_STEPS,
    UNKNOWN_STEP_TEXT,
    InvalidStepError,
    RequiresRemix,
    RoadmapState,
    get_roadmap_step,
    get_roadmap_step_name,
    get_roadmap_step_options,
    get_visible_steps,
    is_current_step_valid,
    set_current_step,
    set_open_step,
    set_requires_remix,
)


REMIX_ONLY = ["5a", "5b", "5c"]
NO_REMIX_ONLY = ["6"]


def _visible(state):
    return {v.step.key: v for v in get_visible_steps(state)}


def _state(requires_remix=RequiresRemix.UNKNOWN, current="", open_=""):
    return RoadmapState(requires_remix=requires_remix, current_step_key=current, open_step_key=open_)


# ── Catalog ───────────────────────────────────────────────────────────────────

class TestCatalog:
    def test_catalog_order(self):
        assert [s.key for s in ROADMAP_STEPS] == [
            "1", "2", "3", "4", "5a", "5b", "5c", "6", "7", "8", "9", "10", "11", "12",
        ]

    def test_conditional_groups(self):
        groups = {s.key: s.conditional_group for s in ROADMAP_STEPS}
        assert [k for k, g in groups.items() if g == "remix"] == REMIX_ONLY
        assert [k for k, g in groups.items() if g == "no_remix"] == NO_REMIX_ONLY
        assert sum(1 for g in groups.values() if g is None) == 10

    def test_only_step_9_optional(self):
        assert [s.key for s in ROADMAP_STEPS if s.optional] == ["9"]

    def test_step_name_lookup(self):
        assert get_roadmap_step_name("1") == "Vision"
        assert get_roadmap_step_name("5b") == "Mapping"
        assert get_roadmap_step_name("4") == ""

    @pytest.mark.parametrize("key", ["99", "", None, 5])
    def test_step_name_unknown(self, key):
        assert get_roadmap_step_name(key) == UNKNOWN_STEP_TEXT
        assert get_roadmap_step(key) is None

    def test_step_options(self):
        options = get_roadmap_step_options()
        by_key = {o["key"]: o for o in options}
        assert len(options) == len(ROADMAP_STEPS)
        assert by_key["1"]["text"] == "Vision (1)"
        assert by_key["4"]["text"] == "Step 4"
        assert by_key["5c"]["text"] == "Remixing (5c)"
        assert by_key["12"]["value"] == "12"


# ── RequiresRemix ─────────────────────────────────────────────────────────────

class TestRequiresRemix:
    def test_from_stored(self):
        assert RequiresRemix.from_stored(True) is RequiresRemix.REMIX
        assert RequiresRemix.from_stored(False) is RequiresRemix.NO_REMIX
        assert RequiresRemix.from_stored(None) is RequiresRemix.UNKNOWN

    def test_truthy_non_bool_is_unknown(self):
        assert RequiresRemix.from_stored(1) is RequiresRemix.UNKNOWN
        assert RequiresRemix.from_stored("true") is RequiresRemix.UNKNOWN

    def test_to_stored(self):
        assert RequiresRemix.REMIX.to_stored() is True
        assert RequiresRemix.NO_REMIX.to_stored() is False
        assert RequiresRemix.UNKNOWN.to_stored() is None


# ── get_visible_steps ─────────────────────────────────────────────────────────

class TestGetVisibleSteps:
    def test_initial_state(self):
        state = RoadmapState()
        assert state.requires_remix is RequiresRemix.UNKNOWN
        assert state.current_step_key == ""
        assert state.open_step_key == ""

    def test_remix_excludes_skeleton(self):
        visible = _visible(_state(RequiresRemix.REMIX))
        assert "6" not in visible
        for key in REMIX_ONLY:
            assert visible[key].is_disabled is False
        assert len(visible) == len(ROADMAP_STEPS) - 1

    def test_no_remix_excludes_remix_steps(self):
        visible = _visible(_state(RequiresRemix.NO_REMIX))
        for key in REMIX_ONLY:
            assert key not in visible
        assert visible["6"].is_disabled is False
        assert len(visible) == len(ROADMAP_STEPS) - 3

    def test_unknown_shows_all_with_branches_disabled(self):
        visible = _visible(_state())
        assert len(visible) == len(ROADMAP_STEPS)
        for key in REMIX_ONLY + NO_REMIX_ONLY:
            assert visible[key].is_disabled is True
        assert visible["4"].is_disabled is False
        assert [k for k, v in visible.items() if v.is_disabled] == REMIX_ONLY + NO_REMIX_ONLY

    def test_order_preserved(self):
        for remix in RequiresRemix:
            keys = [v.step.key for v in get_visible_steps(_state(remix))]
            catalog = [s.key for s in ROADMAP_STEPS]
            assert keys == [k for k in catalog if k in keys]

    def test_active_follows_open_step(self):
        steps = get_visible_steps(_state(RequiresRemix.REMIX, open_="7"))
        assert [v.step.key for v in steps if v.is_active] == ["7"]

    def test_open_step_hidden_by_branch_is_not_listed(self):
        steps = get_visible_steps(_state(RequiresRemix.NO_REMIX, open_="5a"))
        assert not any(v.is_active for v in steps)

    def test_to_dict_flags(self):
        row = _visible(_state(open_="5a"))["5a"].to_dict()
        assert row["key"] == "5a"
        assert row["is_disabled"] is True
        assert row["is_active"] is True
        assert row["conditional_group"] == "remix"


# ── set_requires_remix ────────────────────────────────────────────────────────

class TestSetRequiresRemix:
    def test_sets_value(self):
        assert set_requires_remix(RoadmapState(), True).requires_remix is RequiresRemix.REMIX
        assert set_requires_remix(RoadmapState(), False).requires_remix is RequiresRemix.NO_REMIX

    def test_returns_new_state(self):
        original = RoadmapState()
        updated = set_requires_remix(original, True)
        assert original.requires_remix is RequiresRemix.UNKNOWN
        assert updated is not original

    def test_keeps_step_pointers(self):
        state = _state(current="3", open_="4")
        updated = set_requires_remix(state, True)
        assert updated.current_step_key == "3"
        assert updated.open_step_key == "4"

    @pytest.mark.parametrize("value", [None, 1, "true", 0])
    def test_non_bool_rejected(self, value):
        with pytest.raises(TypeError):
            set_requires_remix(RoadmapState(), value)

    def test_reversal_keeps_stale_current_step(self):
        state = set_requires_remix(RoadmapState(), True)
        state = set_current_step(state, "5b")
        reversed_state = set_requires_remix(state, False)

        keys = [v.step.key for v in get_visible_steps(reversed_state)]
        for key in REMIX_ONLY:
            assert key not in keys
        assert "6" in keys
        assert reversed_state.current_step_key == "5b"
        assert is_current_step_valid(reversed_state) is False


# ── set_current_step ──────────────────────────────────────────────────────────

class TestSetCurrentStep:
    def test_sets_unconditional_step(self):
        assert set_current_step(RoadmapState(), "7").current_step_key == "7"

    def test_decision_step_selectable_while_unknown(self):
        assert set_current_step(RoadmapState(), "4").current_step_key == "4"

    @pytest.mark.parametrize("key", REMIX_ONLY + NO_REMIX_ONLY)
    def test_disabled_step_rejected_while_unknown(self, key):
        with pytest.raises(InvalidStepError):
            set_current_step(RoadmapState(), key)

    def test_remix_step_rejected_without_remix(self):
        state = _state(RequiresRemix.NO_REMIX, current="3")
        with pytest.raises(InvalidStepError) as excinfo:
            set_current_step(state, "5a")
        assert excinfo.value.step_key == "5a"
        assert state.current_step_key == "3"

    def test_skeleton_rejected_with_remix(self):
        with pytest.raises(InvalidStepError):
            set_current_step(_state(RequiresRemix.REMIX), "6")

    def test_branch_steps_allowed_after_decision(self):
        assert set_current_step(_state(RequiresRemix.REMIX), "5c").current_step_key == "5c"
        assert set_current_step(_state(RequiresRemix.NO_REMIX), "6").current_step_key == "6"

    @pytest.mark.parametrize("key", ["99", "", None])
    def test_unknown_step_rejected(self, key):
        with pytest.raises(InvalidStepError):
            set_current_step(RoadmapState(), key)

    def test_invalid_step_error_is_value_error(self):
        with pytest.raises(ValueError):
            set_current_step(RoadmapState(), "nope")

    def test_state_is_frozen(self):
        state = RoadmapState()
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.current_step_key = "1"


# ── set_open_step / is_current_step_valid ─────────────────────────────────────

class TestSetOpenStep:
    def test_open_disabled_step_allowed(self):
        state = set_open_step(RoadmapState(), "5a")
        assert state.open_step_key == "5a"
        assert state.current_step_key == ""

    def test_open_unknown_step_rejected(self):
        with pytest.raises(InvalidStepError):
            set_open_step(RoadmapState(), "13")


class TestIsCurrentStepValid:
    def test_empty_current_step_is_valid(self):
        assert is_current_step_valid(RoadmapState()) is True

    def test_valid_current_step(self):
        assert is_current_step_valid(_state(RequiresRemix.REMIX, current="5a")) is True

    def test_current_step_disabled_by_unknown(self):
        assert is_current_step_valid(_state(current="6")) is False
