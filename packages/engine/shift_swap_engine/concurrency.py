"""Optimistic concurrency control for swap request status changes."""

import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shift_swap_core.db_models import SwapRequest
from shift_swap_core.errors import ConcurrencyConflict, ResourceNotFoundError
from shift_swap_core.models import SwapRequestStatus

logger = logging.getLogger(__name__)


class OptimisticConcurrencyController:
    """Compare-and-swap on a swap request's status column."""

    resource_type = "SwapRequest"

    def apply(
        self,
        session: Session,
        request_id: str,
        expected_status: SwapRequestStatus,
        new_status: SwapRequestStatus,
        **fields: Any,
    ) -> None:
        """Move a request to ``new_status`` only if it is still in ``expected_status``.

        Issues a single conditional UPDATE. Other columns (approval
        timestamps) are written in the same statement.

        Args:
            session: The caller's session; nothing is committed here
            request_id: The swap request ID
            expected_status: The status the caller last observed
            new_status: The status to move to
            **fields: Additional columns to set

        Raises:
            ConcurrencyConflict: If the stored status is no longer ``expected_status``
            ResourceNotFoundError: If the request does not exist
        """
        stmt = (
            update(SwapRequest)
            .where(SwapRequest.id == request_id)
            .where(SwapRequest.status == expected_status.value)
            .values(status=new_status.value, **fields)
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)

        if result.rowcount == 0:
            actual = session.execute(
                select(SwapRequest.status).where(SwapRequest.id == request_id)
            ).scalar_one_or_none()
            if actual is None:
                raise ResourceNotFoundError(self.resource_type, request_id)

            logger.warning(
                "Lost optimistic race on %s: expected %s, found %s",
                request_id, expected_status.value, actual,
            )
            raise ConcurrencyConflict(
                self.resource_type, request_id, expected_status.value, actual
            )

        logger.debug("%s %s: %s -> %s", self.resource_type, request_id, expected_status.value, new_status.value)
