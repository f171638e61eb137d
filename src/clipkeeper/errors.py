"""Exceptions raised by clipkeeper components."""


class PersistenceError(Exception):
    """
    Raised when the history snapshot or a payload file cannot be written.

    The engine keeps its in-memory state when this happens and reports the
    failure to the listener instead of letting it escape the operation.
    """

    pass


class ProtocolError(Exception):
    """
    Raised for control channel framing errors.

    Covers invalid netstring length fields, oversized messages, missing
    terminators and connections closed in the middle of a message.
    """

    pass
