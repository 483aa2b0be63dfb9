"""
Lead status lifecycle.

Any status may move to any other status. A transition appends one immutable
entry to status_history; asking for the current status appends nothing.
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Mapping

# Attributes a general update may overwrite (only when a truthy value is sent)
UPDATABLE_ATTRIBUTES = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "date_of_birth",
    "address",
    "application_type",
    "lawsuit",
    "notes",
)


def build_fields(values: Optional[Mapping[str, Optional[str]]]) -> List[Dict[str, str]]:
    """Convert a key->value map into the stored ordered list, dropping empty values."""
    if not values:
        return []
    return [{"key": key, "value": value} for key, value in values.items() if value]


def history_entry(
    from_status: str,
    to_status: str,
    notes: Optional[str],
    changed_by: str,
    timestamp: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "from_status": from_status,
        "to_status": to_status,
        "notes": notes or "",
        "changed_by": changed_by,
        "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
    }


def transition(
    current_status: str,
    target_status: Optional[str],
    notes: Optional[str],
    changed_by: str,
) -> Optional[Dict[str, Any]]:
    """Return the history entry for moving to target_status, or None when nothing changes."""
    if not target_status or target_status == current_status:
        return None
    return history_entry(current_status, target_status, notes, changed_by)


def attribute_updates(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Pick the truthy scalar attributes out of an update payload."""
    return {
        name: values[name]
        for name in UPDATABLE_ATTRIBUTES
        if values.get(name)
    }
