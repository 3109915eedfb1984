"""Bridge exceptions.

Everything raised here is fatal for the event stream: the listener tears
its subscriptions down and re-raises. Facade calls never raise these.
"""


class BridgeError(Exception):
    """Base class for bridge errors."""


class ConnectionLost(BridgeError):
    """The bus connection dropped or could not be opened."""


class ContractViolation(BridgeError):
    """A payload does not have the shape the daemon interface promises."""

    def __init__(self, source: str, detail: str, payload: object = None):
        self.source = source
        self.detail = detail
        self.payload = payload
        super().__init__(f"{source}: {detail}")


class SubscriptionError(BridgeError):
    """Startup could not register every signal subscription."""
