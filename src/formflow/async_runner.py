"""Bridge for driving form coroutines from synchronous callers."""

from __future__ import annotations

import asyncio
import threading
from queue import Queue
from typing import TYPE_CHECKING, Any

from formflow.exceptions import AsyncExecutionError

if TYPE_CHECKING:
    from collections.abc import Coroutine


def _run_in_background_thread[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion on a private event loop in a worker thread.

    Args:
        coro: The coroutine to run.

    Raises:
        AsyncExecutionError: If the coroutine raises an exception.

    Returns:
        The result of the coroutine.
    """
    output: Queue[T | BaseException] = Queue(maxsize=1)

    def _runner() -> None:
        try:
            output.put(asyncio.run(coro))
        except BaseException as exc:  # noqa: BLE001
            output.put(exc)

    thread = threading.Thread(target=_runner, name="formflow-submit", daemon=True)
    thread.start()
    thread.join()

    result = output.get()
    if isinstance(result, BaseException):
        raise AsyncExecutionError(result=result, message="Form coroutine failed") from result
    return result


def run_async[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine from code that cannot await it.

    Without a running loop the coroutine runs through `asyncio.run` and its
    exceptions propagate unchanged. Inside a running loop it runs on a worker
    thread and failures surface as `AsyncExecutionError`.

    Args:
        coro: The coroutine to run.

    Returns:
        The result of the coroutine.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    return _run_in_background_thread(coro)
