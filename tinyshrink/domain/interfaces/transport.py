"""Interface for the transport executor.

Defines the contract for sending one request to the remote service and
classifying its result. Retrying is not the transport's concern.
"""

import abc

from ..models.request import ApiRequest
from ..models.outcome import RequestOutcome


class Transport(abc.ABC):
    """Abstract Base Class for single-attempt request execution."""

    @abc.abstractmethod
    async def execute(self, request: ApiRequest) -> RequestOutcome:
        """Sends one request and classifies the outcome.

        Args:
            request: The request to send.

        Returns:
            Success for 2xx, RetryableFailure for transient conditions
            (network errors, timeouts, 5xx, burst 429), FatalFailure otherwise.
            Never raises for HTTP-level failures.
        """
        pass

    async def aclose(self) -> None:
        """Releases pooled connections. Optional for implementations."""
        return None
