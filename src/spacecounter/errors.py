class SpaceCounterError(Exception):
    """Base class for errors raised by the space counter service."""


class ConnectionNotFound(SpaceCounterError):
    def __init__(self, connection_id: str):
        super().__init__(f"No connection registered for id={connection_id}")
        self.connection_id = connection_id


class ConnectionExists(SpaceCounterError):
    def __init__(self, connection_id: str):
        super().__init__(f"Connection already registered for id={connection_id}")
        self.connection_id = connection_id


class InvalidSpaceCode(SpaceCounterError):
    def __init__(self, space_code: str):
        super().__init__(f"Invalid space code: {space_code!r}")
        self.space_code = space_code


class ProtocolError(SpaceCounterError):
    """An inbound websocket message could not be interpreted."""


class UnknownCountMode(ProtocolError):
    def __init__(self, mode: str):
        super().__init__(f"Unknown count mode: {mode!r}")
        self.mode = mode


class TransportError(SpaceCounterError):
    """Reading from or writing to a websocket failed."""
