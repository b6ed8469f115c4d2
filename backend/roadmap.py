"""
Project construction roadmap: the fixed step catalog plus the pure
transitions applied to a project's roadmap progress.

Step 4 asks whether the project remixes existing OER. The answer picks a branch:
    remix     -> 5a Scan, 5b Mapping, 5c Remixing
    no remix  -> 6 Skeleton
Until it is answered, both branches are listed but disabled.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


UNKNOWN_STEP_TEXT = "Unknown Step"
DECISION_STEP_KEY = "4"
PUBLISH_STEP_KEY = "11"

REMIX_GROUP = "remix"
NO_REMIX_GROUP = "no_remix"

_GUIDE_URL = (
    "https://chem.libretexts.org/Courses/Remixer_University/"
    "LibreTexts_Construction_Guide"
)


class RequiresRemix(Enum):
    UNKNOWN = "unknown"
    REMIX = "remix"
    NO_REMIX = "no_remix"

    @classmethod
    def from_stored(cls, value) -> "RequiresRemix":
        """Map the persisted tri-state (None / True / False)."""
        if value is True:
            return cls.REMIX
        if value is False:
            return cls.NO_REMIX
        return cls.UNKNOWN

    def to_stored(self) -> Optional[bool]:
        if self is RequiresRemix.REMIX:
            return True
        if self is RequiresRemix.NO_REMIX:
            return False
        return None


class InvalidStepError(ValueError):
    """A step cannot be used for the requested roadmap transition."""

    def __init__(self, step_key, message: str):
        super().__init__(message)
        self.step_key = step_key


@dataclass(frozen=True)
class RoadmapStep:
    key: str
    title: str
    name: str
    description: str
    has_extra: bool = False
    link_href: str = ""
    link_title: str = ""
    optional: bool = False
    conditional_group: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "name": self.name,
            "description": self.description,
            "has_extra": self.has_extra,
            "link_href": self.link_href,
            "link_title": self.link_title,
            "optional": self.optional,
            "conditional_group": self.conditional_group,
        }


@dataclass(frozen=True)
class RoadmapState:
    """
    Roadmap progress for one project.

    requires_remix and current_step_key are persisted per project;
    open_step_key only tracks which step's detail pane is expanded.
    """

    requires_remix: RequiresRemix = RequiresRemix.UNKNOWN
    current_step_key: str = ""
    open_step_key: str = ""


@dataclass(frozen=True)
class VisibleStep:
    step: RoadmapStep
    is_disabled: bool
    is_active: bool

    def to_dict(self) -> dict:
        out = self.step.to_dict()
        out["is_disabled"] = self.is_disabled
        out["is_active"] = self.is_active
        return out


ROADMAP_STEPS: tuple[RoadmapStep, ...] = (
    RoadmapStep(
        key="1",
        title="Step 1",
        name="Vision",
        description=(
            "Decide whether you are creating a new book from original content "
            "or adapting and remixing existing content into a new OER."
        ),
        has_extra=True,
        link_href=f"{_GUIDE_URL}/02%3A_A_Framework_for_Designing_Online_Texts",
        link_title="Designing Online Texts",
    ),
    RoadmapStep(
        key="2",
        title="Step 2",
        name="Accounts",
        description="Register for a LibreTexts instructor account to get editing access.",
        has_extra=True,
        link_href="https://register.libretexts.org/",
        link_title="Register at LibreTexts",
    ),
    RoadmapStep(
        key="3",
        title="Step 3",
        name="Training",
        description=(
            "Work through the construction guide chapters on basic editing "
            "and the Remixer."
        ),
        link_href=f"{_GUIDE_URL}/03%3A_Basic_Editing",
        link_title="Basic Editing",
    ),
    RoadmapStep(
        key=DECISION_STEP_KEY,
        title="Step 4",
        name="",
        description="Will your project remix existing OER content?",
        has_extra=True,
        link_href=f"{_GUIDE_URL}/07%3A_Remixing_Existing_Content",
        link_title="Remixing Existing Content",
    ),
    RoadmapStep(
        key="5a",
        title="Step 5a",
        name="Scan",
        description="Scan the libraries for existing OER to reuse in your text.",
        conditional_group=REMIX_GROUP,
    ),
    RoadmapStep(
        key="5b",
        title="Step 5b",
        name="Mapping",
        description=(
            "Build a remixing map listing every existing resource you plan "
            "to use, in order."
        ),
        link_href=f"{_GUIDE_URL}/07%3A_Remixing_Existing_Content/7.02%3A_Building_Remixing_Maps",
        link_title="Building Remixing Maps",
        conditional_group=REMIX_GROUP,
    ),
    RoadmapStep(
        key="5c",
        title="Step 5c",
        name="Remixing",
        description="Build the remix from your map in the Remixer and save it to your sandbox.",
        has_extra=True,
        link_href=f"{_GUIDE_URL}/07%3A_Remixing_Existing_Content/7.03%3A_How_to_Make_a_LibreTexts_Remix",
        link_title="Remixer Tutorial",
        conditional_group=REMIX_GROUP,
    ),
    RoadmapStep(
        key="6",
        title="Step 6",
        name="Skeleton",
        description="Build an empty text skeleton in the Remixer and upload it to your sandbox.",
        has_extra=True,
        link_href=f"{_GUIDE_URL}/07%3A_Remixing_Existing_Content/7.03%3A_How_to_Make_a_LibreTexts_Remix",
        link_title="Remixer Tutorial",
        conditional_group=NO_REMIX_GROUP,
    ),
    RoadmapStep(
        key="7",
        title="Step 7",
        name="Constructing",
        description="Fill in the empty pages with new content.",
        has_extra=True,
        link_href=f"{_GUIDE_URL}/03%3A_Basic_Editing",
        link_title="Basic Editing",
    ),
    RoadmapStep(
        key="8",
        title="Step 8",
        name="Editing",
        description="Edit chapters, sections and pages, forking transcluded content where needed.",
    ),
    RoadmapStep(
        key="9",
        title="Step 9",
        name="Advanced",
        description="Add advanced features such as interactive elements and embedded media.",
        link_href=f"{_GUIDE_URL}/04%3A_Advanced_Editing",
        link_title="Advanced Editing",
        optional=True,
    ),
    RoadmapStep(
        key="10",
        title="Step 10",
        name="Accessibility",
        description="Review the text for accessibility before publishing.",
    ),
    RoadmapStep(
        key=PUBLISH_STEP_KEY,
        title="Step 11",
        name="Publishing",
        description="Request publication of the finished text to the LibreTexts libraries.",
    ),
    RoadmapStep(
        key="12",
        title="Step 12",
        name="Curating",
        description="Keep the published text current as feedback and errata arrive.",
    ),
)

_STEPS_BY_KEY = {s.key: s for s in ROADMAP_STEPS}

# Group hidden once the remix question is answered.
_EXCLUDED_GROUP = {
    RequiresRemix.REMIX: NO_REMIX_GROUP,
    RequiresRemix.NO_REMIX: REMIX_GROUP,
}


def get_roadmap_step(step_key) -> Optional[RoadmapStep]:
    if not isinstance(step_key, str):
        return None
    return _STEPS_BY_KEY.get(step_key)


def get_roadmap_step_name(step_key) -> str:
    """Internal step key -> UI name, or 'Unknown Step'."""
    step = get_roadmap_step(step_key)
    if step is None:
        return UNKNOWN_STEP_TEXT
    return step.name


def get_roadmap_step_options() -> list[dict]:
    """Compact selector list: 'Vision (1)', ..., 'Step 4', ..."""
    options = []
    for step in ROADMAP_STEPS:
        text = f"{step.name} ({step.key})" if step.name else step.title
        options.append({"key": step.key, "text": text, "value": step.key})
    return options


def get_visible_steps(state: RoadmapState) -> list[VisibleStep]:
    """
    Steps to list for a roadmap state, in catalog order.

    Answered remix question: the other branch is dropped.
    Unanswered: every step is listed, branch steps flagged disabled.
    """
    excluded = _EXCLUDED_GROUP.get(state.requires_remix)
    undecided = state.requires_remix is RequiresRemix.UNKNOWN

    visible = []
    for step in ROADMAP_STEPS:
        if excluded is not None and step.conditional_group == excluded:
            continue
        visible.append(VisibleStep(
            step=step,
            is_disabled=undecided and step.conditional_group is not None,
            is_active=step.key == state.open_step_key,
        ))
    return visible


def _selectable_step_keys(state: RoadmapState) -> set[str]:
    return {v.step.key for v in get_visible_steps(state) if not v.is_disabled}


def set_requires_remix(state: RoadmapState, value: bool) -> RoadmapState:
    """
    Record the answer to the step 4 remix question.

    The decision can be reversed at any time. current_step_key is left as-is
    even if the new branch hides it; see is_current_step_valid().
    """
    if not isinstance(value, bool):
        raise TypeError(f"requires_remix must be a bool, got {type(value).__name__}")
    new_value = RequiresRemix.REMIX if value else RequiresRemix.NO_REMIX
    return replace(state, requires_remix=new_value)


def set_current_step(state: RoadmapState, step_key: str) -> RoadmapState:
    if get_roadmap_step(step_key) is None:
        raise InvalidStepError(step_key, f"'{step_key}' is not a roadmap step.")
    if step_key not in _selectable_step_keys(state):
        raise InvalidStepError(
            step_key,
            f"Step {step_key} is not available for this project's remix selection.",
        )
    return replace(state, current_step_key=step_key)


def set_open_step(state: RoadmapState, step_key: str) -> RoadmapState:
    # Disabled steps can still be opened for reading.
    if get_roadmap_step(step_key) is None:
        raise InvalidStepError(step_key, f"'{step_key}' is not a roadmap step.")
    return replace(state, open_step_key=step_key)


def is_current_step_valid(state: RoadmapState) -> bool:
    """False when the stored current step is hidden or disabled under the remix answer."""
    if not state.current_step_key:
        return True
    return state.current_step_key in _selectable_step_keys(state)
