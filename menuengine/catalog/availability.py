"""Time and fulfillment availability checks.

Pure functions over catalog data: no clock reads, the caller passes ``at``.
"""

from datetime import datetime
from typing import Iterable, Optional

from menuengine.catalog.models import AvailabilityWindow, DisabledInterval
from menuengine.products.reasons import BlanketDisabled, Enabled, EnableState, TimeDisabled


def check_disabled(
    disabled: Optional[DisabledInterval],
    availability: Iterable[AvailabilityWindow],
    at: datetime,
) -> EnableState:
    """Explicit interval first, then recurring windows.

    An indefinite interval is reported as BlanketDisabled whatever ``at`` is.
    """
    if disabled is not None:
        if disabled.is_indefinite:
            return BlanketDisabled()
        if disabled.contains(at):
            return TimeDisabled()
    windows = tuple(availability)
    if windows and not any(window.contains(at) for window in windows):
        return TimeDisabled()
    return Enabled()


def is_disabled_for_fulfillment(excluded: Iterable[str], fulfillment_id: Optional[str]) -> bool:
    if fulfillment_id is None:
        return False
    return fulfillment_id in frozenset(excluded)
