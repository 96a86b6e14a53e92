"""
Decoding of n8n callback envelopes into LearningPlanRecord objects.

n8n payload shapes vary between workflow versions, so every field is looked
up through explicit candidate paths instead of being coerced.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from learnhub.models.schemas import (
    ActionPlan,
    LearningModule,
    LearningPlanRecord,
    LearningResource,
    ResourceType,
)
from learnhub.utils.errors import ValidationError
from learnhub.utils.helpers import is_plausible_email, normalize_identifier

DEFAULT_QUICK_START = "Begin with Module 1 this week."
DEFAULT_DAILY_ROUTINE = "Dedicate time each day to learning."
DEFAULT_PROGRESS_TRACKING = "Keep track of your progress."
DEFAULT_DURATION = "Self-paced"
DEFAULT_RESOURCE_NAME = "Untitled resource"

# (source, path, must look like an email), tried in order.
KEY_CANDIDATES: Sequence[Tuple[str, Tuple[str, ...], bool]] = (
    ("request", ("requestId",), False),
    ("request", ("dataId",), False),
    ("data", ("dataId",), False),
    ("data", ("requestId",), False),
    ("data", ("learningData", "requestId"), False),
    ("record", ("email",), True),
    ("raw", ("email",), True),
    ("data", ("learningData", "email"), True),
    ("data", ("learningData", "profile_summary", "email"), True),
    ("data", ("profile", "email"), True),
    ("data", ("userProfile", "email"), True),
)

RESOURCE_TYPE_KEYWORDS = (
    ("youtube", ResourceType.YOUTUBE),
    ("video", ResourceType.YOUTUBE),
    ("course", ResourceType.COURSE),
    ("practice", ResourceType.PRACTICE),
    ("exercise", ResourceType.PRACTICE),
    ("project", ResourceType.PRACTICE),
)


def dig(source: Any, path: Sequence[str]) -> Any:
    """Follow ``path`` through nested dicts; None when any step is missing."""
    current = source
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _first_text(source: Mapping, *keys: str) -> Optional[str]:
    for key in keys:
        value = _text(source.get(key))
        if value:
            return value
    return None


def _first_item(value: Any) -> Any:
    if isinstance(value, list):
        if not value:
            raise ValidationError("Invalid data structure from n8n: empty payload")
        return value[0]
    return value


def unwrap_envelope(payload: Any) -> Dict[str, Any]:
    """
    Reduce an n8n delivery to the object that carries ``learningData``.

    Accepts a plain object, a one-element array, and either of those wrapped
    in a ``body`` field.
    """
    data = _first_item(payload)
    if isinstance(data, dict) and isinstance(data.get("body"), (dict, list)):
        data = _first_item(data["body"])

    if not isinstance(data, dict):
        raise ValidationError("Invalid data structure from n8n")
    return data


def normalize_resource_type(value: Any) -> ResourceType:
    label = (_text(value) or "").lower()
    for member in ResourceType:
        if label == member.value.lower():
            return member
    for keyword, member in RESOURCE_TYPE_KEYWORDS:
        if keyword in label:
            return member
    return ResourceType.ARTICLE


def transform_resource(resource: Mapping) -> LearningResource:
    return LearningResource(
        type=normalize_resource_type(resource.get("type")),
        name=_first_text(resource, "title", "name") or DEFAULT_RESOURCE_NAME,
        link=_first_text(resource, "link", "url") or "#",
        duration_estimate=_first_text(resource, "duration", "duration_estimate") or "",
        rationale=_first_text(resource, "description", "rationale") or "",
    )


def transform_module(module: Mapping, number: int) -> LearningModule:
    resources = module.get("resources")
    if not isinstance(resources, list):
        resources = []
    return LearningModule(
        module_number=number,
        module_title=_first_text(module, "title", "module_title") or f"Module {number}",
        duration=_first_text(module, "duration") or DEFAULT_DURATION,
        objective=_first_text(module, "objective") or "",
        resources=[transform_resource(r) for r in resources if isinstance(r, Mapping)],
    )


def transform_action_plan(raw_plan: Any) -> ActionPlan:
    plan = raw_plan if isinstance(raw_plan, Mapping) else {}
    steps = plan.get("steps") if isinstance(plan.get("steps"), list) else []

    def step(index: int) -> Optional[str]:
        if index < len(steps) and isinstance(steps[index], Mapping):
            return _text(steps[index].get("description"))
        return None

    return ActionPlan(
        quick_start=step(0) or _text(plan.get("quick_start")) or DEFAULT_QUICK_START,
        daily_routine=step(1) or _text(plan.get("daily_routine")) or DEFAULT_DAILY_ROUTINE,
        progress_tracking=step(2) or _text(plan.get("progress_tracking")) or DEFAULT_PROGRESS_TRACKING,
    )


def transform_tips(raw_tips: Any) -> List[str]:
    if not isinstance(raw_tips, list):
        return []

    tips = []
    for tip in raw_tips:
        if isinstance(tip, str):
            if tip.strip():
                tips.append(tip)
        elif isinstance(tip, Mapping):
            title = _text(tip.get("title"))
            description = _text(tip.get("description")) or ""
            if title:
                tips.append(f"<strong>{title}:</strong> {description}".rstrip())
            elif description:
                tips.append(description)
    return tips


def transform_plan(data: Mapping) -> LearningPlanRecord:
    """
    Transform an unwrapped n8n object into the canonical record.

    Raises:
        ValidationError: if ``learningData`` is missing
    """
    learning_data = data.get("learningData")
    if not isinstance(learning_data, Mapping):
        raise ValidationError("Invalid data structure from n8n: missing learningData")

    modules = learning_data.get("learning_path")
    if not isinstance(modules, list):
        modules = []

    profile_summary = learning_data.get("profile_summary")
    return LearningPlanRecord(
        email=_text(data.get("email")),
        profile_summary=dict(profile_summary) if isinstance(profile_summary, Mapping) else {},
        learning_path=[
            transform_module(module, index + 1)
            for index, module in enumerate(m for m in modules if isinstance(m, Mapping))
        ],
        action_plan=transform_action_plan(learning_data.get("action_plan")),
        pro_tips=transform_tips(learning_data.get("pro_tips")),
        expected_timeline=learning_data.get("expected_timeline"),
    )


def resolve_plan_key(
    raw: Any,
    data: Mapping,
    record: LearningPlanRecord,
    request_ids: Optional[Mapping[str, Any]] = None,
) -> Optional[str]:
    """
    Pick the storage key for a callback from the ordered candidate paths.

    Returns:
        The normalized identifier, or None when no candidate is usable
    """
    sources = {
        "request": request_ids or {},
        "data": data,
        "record": {"email": record.email},
        "raw": raw if isinstance(raw, Mapping) else {},
    }

    for source, path, email_only in KEY_CANDIDATES:
        value = dig(sources[source], path)
        if not isinstance(value, str) or not value.strip():
            continue
        if email_only and not is_plausible_email(value):
            continue
        return normalize_identifier(value)

    return None
