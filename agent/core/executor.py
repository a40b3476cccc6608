# Uniform execution and status reporting for command handlers
import logging
from typing import Callable, TypeVar

from pydantic import BaseModel

from shared.models import UNTRACKED_OPERATION, StatusUpdateMessage

logger = logging.getLogger(__name__)

SUCCESS_PREFIX = "Success : "

T = TypeVar("T", bound=BaseModel)


def describe_error(error: BaseException) -> str:
    """Human readable, never empty, description of an exception."""
    text = str(error)
    return f"{type(error).__name__}: {text}" if text else type(error).__name__


class OperationExecutor:
    """
    Runs local operations and turns their outcome into protocol messages.

    Every ``Exception`` raised by an operation, or by its success callback, is
    caught here and reported as a failed ``StatusUpdateMessage``, so one bad
    command can never take down the receive loop.

    Args:
        send: Callable that enqueues a message for the controller
    """

    def __init__(self, send: Callable[[BaseModel], None]):
        self.send = send

    def send_status(self, operation_id: int, operation_name: str, success: bool, message: str):
        self.send(
            StatusUpdateMessage(
                operation_id=operation_id,
                operation_name=operation_name,
                success=success,
                message=message,
            )
        )

    def send_failure(self, operation_id: int, operation_name: str, error: BaseException):
        logger.warning(f"{operation_name} failed (operation {operation_id}): {error}")
        self.send_status(operation_id, operation_name, False, describe_error(error))

    def run_simple(
        self,
        operation_name: str,
        operation: Callable[[], T],
        describe: Callable[[T], str],
    ):
        """
        Run an untracked operation that ends with exactly one status line.

        On success the result message is forwarded, followed by a successful
        status carrying ``"Success : " + describe(result)``. On failure only the
        failed status is sent.
        """
        self.run_complex(
            UNTRACKED_OPERATION,
            operation_name,
            operation,
            lambda result: self.send_status(
                UNTRACKED_OPERATION, operation_name, True, SUCCESS_PREFIX + describe(result)
            ),
        )

    def run_complex(
        self,
        operation_id: int,
        operation_name: str,
        operation: Callable[[], T],
        on_success: Callable[[T], None],
    ):
        """
        Run an operation whose result is itself a message to forward.

        The result is sent first, then ``on_success(result)`` runs and may emit
        further status, e.g. a terminal status once a multi-part sequence ends.
        """
        try:
            result = operation()
            self.send(result)
            on_success(result)
        except Exception as e:
            self.send_failure(operation_id, operation_name, e)
