"""Correlate umbrella builds with component commits and publish insertion issues."""

from prtagger.services.tagger.model import (
    AlreadyNotified,
    ComponentResolution,
    Failed,
    NoChange,
    ProductReport,
    Succeeded,
    TagOutcome,
    UmbrellaBuildRecord,
)
from prtagger.services.tagger.traversal import TraversalController

__all__ = [
    "AlreadyNotified",
    "ComponentResolution",
    "Failed",
    "NoChange",
    "ProductReport",
    "Succeeded",
    "TagOutcome",
    "TraversalController",
    "UmbrellaBuildRecord",
]
