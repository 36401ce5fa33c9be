import logging
import time
from typing import Callable, Optional

from cvs_client.errors import CvsError, OperationCancelledError

logger = logging.getLogger("cvs.cancel")


def is_cancelled(
    should_cancel: Optional[Callable[[], bool]] = None,
    deadline: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    # Checked between attempts only; an in-flight call or sleep always runs to completion.
    if should_cancel is not None and should_cancel():
        return True
    if deadline is not None and clock() >= deadline:
        return True
    return False


def ensure_not_cancelled(
    operation: str,
    *,
    should_cancel: Optional[Callable[[], bool]] = None,
    deadline: Optional[float] = None,
    last_error: Optional[CvsError] = None,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    if is_cancelled(should_cancel, deadline, clock):
        logger.warning("operation_cancelled operation=%s last_error=%s", operation, last_error)
        raise OperationCancelledError(operation, last_error)
