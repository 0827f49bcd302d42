"""Rider reservation for multi-orders."""
import logging
from datetime import datetime

from multiorder.application.interfaces import UnitOfWork
from multiorder.application.services.cascade import cascade_step
from multiorder.domain.entities import MultiOrder, Rider
from multiorder.domain.exceptions import ConflictError, NotFoundError
from multiorder.domain.value_objects import Actor


logger = logging.getLogger(__name__)


class RiderAssignmentService:
    """
    Reserves one rider for every sub-order of a multi-order.

    Works inside the caller's unit of work: the aggregate's primary rider,
    the sub-orders' delivery rider and the rider's busy marker are written
    together and commit or roll back as one.
    """

    async def assign(self, uow: UnitOfWork, multi_order: MultiOrder, rider_id: str, at: datetime) -> Rider:
        """
        Assign a rider to the multi-order.

        Raises:
            ConflictError: If a rider is already assigned
            NotFoundError: If the rider does not exist, is not a rider or is offline
            InvalidStateError: If the order is delivered or cancelled
            PartialFailureError: If the sub-order or rider update fails
        """
        if multi_order.primary_rider_id:
            raise ConflictError("Rider already assigned to this order")

        rider = await uow.riders.find_available(rider_id)
        if rider is None:
            raise NotFoundError("Rider not found or not available")

        sub_orders = await uow.sub_orders.get_many(multi_order.sub_order_ids)
        multi_order.assign_rider(rider.id, at, rider_name=rider.name, sub_orders=sub_orders)

        with cascade_step("assign_sub_orders"):
            await uow.sub_orders.set_delivery_rider(multi_order.sub_order_ids, rider.id)
        with cascade_step("reserve_rider"):
            await uow.riders.set_current_assignment(rider.id, str(multi_order.order_number))

        logger.info(f"Rider {rider.id} assigned to {multi_order.order_number}")
        return rider

    async def release(self, uow: UnitOfWork, multi_order: MultiOrder, actor: Actor, at: datetime) -> str:
        """
        Take the primary rider off a multi-order that has not been picked up yet.

        Returns:
            The released rider id
        """
        rider_id = multi_order.release_rider(actor, at)

        with cascade_step("release_sub_orders"):
            await uow.sub_orders.set_delivery_rider(multi_order.sub_order_ids, None)
        with cascade_step("release_rider"):
            await uow.riders.set_current_assignment(rider_id, None)

        logger.info(f"Rider {rider_id} released from {multi_order.order_number} by {actor.id}")
        return rider_id
