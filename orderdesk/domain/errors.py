# orderdesk/domain/errors.py


class OrderDeskError(Exception):
    """Base for every error raised by the drafting/fulfillment pipeline."""


class ValidationError(OrderDeskError, ValueError):
    """Quantity input is invalid or incomplete for the selected unit kind."""


class NotReady(OrderDeskError, ValueError):
    """Submission preconditions are not met (customer, lines, employee)."""


class StaleLineIndex(OrderDeskError, IndexError):
    """A cart line index that does not belong to the current cart snapshot."""


class PersistenceError(OrderDeskError, RuntimeError):
    """Draft could not be read from or written to local storage."""


class SubmissionPartialFailure(OrderDeskError, RuntimeError):
    """The order could not be written as a whole; nothing was kept."""


class ConflictOnComplete(OrderDeskError, RuntimeError):
    """The order is no longer in the sent state."""


class OrderNotFound(OrderDeskError, ValueError):
    pass
