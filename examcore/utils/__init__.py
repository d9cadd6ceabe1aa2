"""Utility modules."""
from examcore.utils.json_utils import json_dump, json_load
from examcore.utils.time_utils import ensure_aware, utc_now, utc_now_iso
from examcore.utils.validation import validate_id

__all__ = [
    "json_dump",
    "json_load",
    "ensure_aware",
    "utc_now",
    "utc_now_iso",
    "validate_id",
]
