"""
Status aggregation.

Maps the statuses of every sub-order to the parent multi-order status.
Pure and order independent: only the multiset of statuses matters.
"""
from typing import Iterable

from ..enums import MultiOrderStatus, SubOrderStatus


_COLLECTED = frozenset({
    SubOrderStatus.PICKED_UP,
    SubOrderStatus.ON_THE_WAY,
    SubOrderStatus.DELIVERED,
})

_ACCEPTED = frozenset({
    SubOrderStatus.CONFIRMED,
    SubOrderStatus.PREPARING,
    SubOrderStatus.READY,
})


def aggregate_status(statuses: Iterable[SubOrderStatus]) -> MultiOrderStatus:
    """
    Compute the aggregated multi-order status.

    Rules are evaluated in precedence order, first match wins. A mix of
    cancelled and active sub-orders is not "all cancelled" and falls through
    to the remaining rules (``[cancelled, delivered]`` is ``pending``).

    Args:
        statuses: Status of every sub-order (plain strings are accepted)

    Returns:
        Aggregated MultiOrderStatus (``pending`` for an empty input)
    """
    values = [SubOrderStatus(s) for s in statuses]
    if not values:
        return MultiOrderStatus.PENDING

    present = set(values)

    if present == {SubOrderStatus.CANCELLED}:
        return MultiOrderStatus.CANCELLED
    if present == {SubOrderStatus.DELIVERED}:
        return MultiOrderStatus.DELIVERED
    if SubOrderStatus.ON_THE_WAY in present:
        return MultiOrderStatus.ON_THE_WAY
    if present <= _COLLECTED:
        return MultiOrderStatus.PICKED_UP
    if SubOrderStatus.PICKED_UP in present:
        return MultiOrderStatus.PICKING_UP
    if present == {SubOrderStatus.READY}:
        return MultiOrderStatus.ALL_READY
    if SubOrderStatus.READY in present:
        return MultiOrderStatus.PARTIALLY_READY
    if SubOrderStatus.PREPARING in present:
        return MultiOrderStatus.PREPARING
    if present <= _ACCEPTED:
        return MultiOrderStatus.ALL_CONFIRMED
    if SubOrderStatus.CONFIRMED in present:
        return MultiOrderStatus.PARTIALLY_CONFIRMED

    return MultiOrderStatus.PENDING
