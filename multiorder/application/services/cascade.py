"""Cascade step guard for multi-entity writes inside one unit of work."""
import logging
from contextlib import contextmanager
from typing import Iterator

from multiorder.domain.exceptions import OrchestrationError, PartialFailureError


logger = logging.getLogger(__name__)


@contextmanager
def cascade_step(step: str) -> Iterator[None]:
    """
    Turn an infrastructure failure inside a cascade into PartialFailureError.

    Business errors pass through untouched. The surrounding unit of work is
    rolled back when the error leaves its ``async with`` block.
    """
    try:
        yield
    except OrchestrationError:
        raise
    except Exception as exc:
        logger.error(f"Cascade step '{step}' failed, rolling back", exc_info=True)
        raise PartialFailureError(
            f"Could not complete '{step}'; no changes were applied", step=step
        ) from exc
