from datetime import datetime
from typing import Any, Literal

from cutroom.domain.entities import Asset, AssetStatus, EditMetadata
from cutroom.domain.errors import InvalidTransition

ReviewEvent = Literal["submit_edit", "approve", "request_changes"]

# Total table: every (status, event) pair has an entry, None means rejected.
TRANSITIONS: dict[AssetStatus, dict[ReviewEvent, AssetStatus | None]] = {
    "pending": {
        "submit_edit": "review_ready",
        "approve": "approved",
        "request_changes": "changes_requested",
    },
    "review_ready": {
        "submit_edit": "review_ready",
        "approve": "approved",
        "request_changes": "changes_requested",
    },
    "changes_requested": {
        "submit_edit": "review_ready",
        "approve": None,
        "request_changes": None,
    },
    "approved": {
        "submit_edit": None,
        "approve": None,
        "request_changes": None,
    },
}


def next_status(current: AssetStatus, event: ReviewEvent) -> AssetStatus | None:
    """Return the status `event` leads to from `current`, or None if not allowed."""
    return TRANSITIONS[current][event]


def can_transition(current: AssetStatus, event: ReviewEvent) -> bool:
    return next_status(current, event) is not None


def _advance(asset: Asset, event: ReviewEvent, now: datetime, updates: dict[str, Any]) -> Asset:
    target = next_status(asset.status, event)
    if target is None:
        raise InvalidTransition(asset.status, event)
    updates.update({"status": target, "updated_at": now})
    return asset.model_copy(update=updates)


def apply_edit(
    asset: Asset, edited_ref: str, metadata: EditMetadata, now: datetime
) -> Asset:
    """
    Return a NEW Asset carrying the edited binary, moved to review_ready.
    Raises InvalidTransition once the asset is approved.
    """
    return _advance(
        asset,
        "submit_edit",
        now,
        {
            "edited_ref": edited_ref,
            "title": metadata.title if metadata.title is not None else asset.title,
            "description": (
                metadata.description if metadata.description is not None else asset.description
            ),
            "tags": list(metadata.tags) or asset.tags,
            "edited_at": now,
        },
    )


def apply_decision(
    asset: Asset, event: ReviewEvent, now: datetime, feedback: str | None = None
) -> Asset:
    """Return a NEW Asset after an approve / request_changes decision."""
    if event == "submit_edit":
        raise ValueError("Decisions are approve or request_changes")

    updates: dict[str, Any] = {}
    if event == "request_changes":
        updates["feedback"] = feedback
        updates["feedback_at"] = now
    return _advance(asset, event, now, updates)
