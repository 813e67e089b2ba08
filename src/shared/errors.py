"""Error taxonomy shared by the ordering, payments and notifications packages.

Validation problems use Protean's ``ValidationError`` directly so that domain
methods raise the same exception whether the bad input came from a field
declaration or a business rule. The remaining classes mark failures that the
HTTP boundary maps to distinct status codes.
"""

from protean.exceptions import ValidationError


class InvalidTransitionError(ValidationError):
    """An order or payment state change that the state machine does not allow."""


class ForbiddenError(Exception):
    """The acting user may not perform this operation on the resource."""


class NotFoundError(Exception):
    """A referenced record (order, address, product) does not exist."""


class IntegrityError(Exception):
    """Amount or signature mismatch.

    Treated as security relevant: the message is for logs only and must never
    be echoed back to the network caller.
    """


class GatewayError(Exception):
    """The payment gateway rejected or failed a request."""

    def __init__(self, message: str, gateway: str | None = None) -> None:
        super().__init__(message)
        self.gateway = gateway


class GatewayUnavailableError(GatewayError):
    """The gateway timed out, was unreachable, or answered with a 5xx."""
