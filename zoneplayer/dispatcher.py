"""Classes for dispatching events"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any

_LOGGER = logging.getLogger(__name__)


class Receiver:
    """Container for a target function that receives events"""

    def __init__(self, dispatcher: Dispatcher, target: Callable):
        """Initialize receiver."""
        self.dispatcher = dispatcher
        self.target = target

    def disconnect(self) -> None:
        """Removes receiver from the dispatcher."""
        self.dispatcher.disconnect(self)


class Dispatcher:
    """Handle event dispatching.

    Plain function targets are called synchronously, in connection order, so an
    event is fully handled before ``send`` returns. Coroutine targets are
    scheduled as tasks on the running loop.
    """

    def __init__(self):
        """Initialize dispatcher."""
        self._receivers: list[Receiver] = []
        self._tasks: set[asyncio.Task] = set()

    def connect(self, target: Callable) -> Receiver:
        """Return a new receiver that runs the target function."""
        receiver = Receiver(self, target)
        self._receivers.append(receiver)
        return receiver

    def send(self, event: str, *args: Any) -> None:
        """Call every receiver's target function with event and args."""
        receivers = list(self._receivers)
        for receiver in receivers:
            self._call_target(receiver.target, event, *args)
        if len(receivers) > 0:
            _LOGGER.debug(
                "Dispatched %s to %s receiver%s with %s",
                event,
                len(receivers),
                "s" if len(receivers) > 1 else "",
                args,
            )

    def disconnect(self, receiver: Receiver):
        """Removes receiver."""
        try:
            self._receivers.remove(receiver)
        except ValueError:
            pass

    def disconnect_all(self) -> None:
        """Disconnect all receivers."""
        self._receivers.clear()

    def _call_target(self, target: Callable, *args) -> None:
        check_target = target
        while isinstance(check_target, functools.partial):
            check_target = check_target.func
        if inspect.iscoroutinefunction(check_target):
            task = asyncio.get_running_loop().create_task(target(*args))
            self._tasks.add(task)
            task.add_done_callback(self._task_done)
            return
        try:
            target(*args)
        except Exception as err:  # pylint: disable=broad-except
            _LOGGER.exception(
                "Unhandled exception in receiver %s('%s')", type(err).__name__, err
            )

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            _LOGGER.error(
                "Unhandled exception in receiver %s('%s')",
                type(err).__name__,
                err,
                exc_info=err,
            )
