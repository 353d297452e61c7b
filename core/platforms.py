# core/platforms.py
import os
from typing import Any, Dict, Mapping, Sequence, Tuple

from .logger import get_logger

logger = get_logger(__name__)

# Reseller platforms a LinkRecord can point at. Deployments pick one shape.
PLATFORM_KEY_SETS: Dict[str, Tuple[str, ...]] = {
    "short": (
        "wayfair",
        "amazon",
        "overstock",
        "homeDepot",
        "lowes",
        "target",
        "kohls",
    ),
    "paired": (
        "amazon1",
        "amazon2",
        "wayfair1",
        "wayfair2",
        "overstock1",
        "overstock2",
        "homeDepot1",
        "homeDepot2",
        "lowes1",
        "lowes2",
        "target1",
        "target2",
        "kohls",
    ),
}

PLATFORM_KEY_SET = os.getenv("PLATFORM_KEY_SET", "short").strip().lower()


def get_platform_keys(name: str | None = None) -> Tuple[str, ...]:
    key_set = (name or PLATFORM_KEY_SET).strip().lower()
    keys = PLATFORM_KEY_SETS.get(key_set)
    if keys is None:
        logger.warning("Unknown PLATFORM_KEY_SET '%s'; using 'short'.", key_set)
        keys = PLATFORM_KEY_SETS["short"]
    return keys


def empty_links(keys: Sequence[str]) -> Dict[str, str]:
    return {k: "" for k in keys}


def sanitize_links(raw: Mapping[str, Any], keys: Sequence[str]) -> Dict[str, str]:
    """
    Project caller-supplied link fields onto the recognized platform keys.
    Unknown keys are dropped, missing or falsy values become "".
    """
    out: Dict[str, str] = {}
    for k in keys:
        value = raw.get(k)
        out[k] = str(value) if value else ""
    return out
