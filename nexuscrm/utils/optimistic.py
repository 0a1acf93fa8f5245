"""Optimistic local updates with deterministic rollback."""
import logging
from typing import Awaitable, Callable, TypeVar
from nexuscrm.core.exceptions import RepositoryError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def optimistic_update(
    get_state: Callable[[], T],
    set_state: Callable[[T], None],
    new_state: T,
    commit: Callable[[], Awaitable[None]],
    error_message: str,
) -> T:
    """
    Two-phase update: apply `new_state` locally, await the remote `commit`,
    and restore the previous state if the commit fails.

    Args:
        get_state: Returns the current local state (snapshotted before applying).
        set_state: Replaces the local state.
        new_state: State to show while the commit is in flight.
        commit: Remote write confirming the change.
        error_message: User-facing message raised on failure.

    Returns:
        The committed state.

    Raises:
        RepositoryError: With `error_message` after the local state was restored.
    """
    snapshot = get_state()
    set_state(new_state)
    try:
        await commit()
    except RepositoryError as e:
        set_state(snapshot)
        logger.error(f"{error_message} Rolled back: {e.message}")
        raise RepositoryError(error_message) from e
    return new_state
