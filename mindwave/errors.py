"""Exception hierarchy for the MindWave driver."""


class MindWaveError(RuntimeError):
    """Base class for all driver errors."""
    pass


# Stream

class StreamError(MindWaveError):
    """Raised when the underlying byte stream fails."""
    pass


class StreamTimeoutError(StreamError):
    """Raised when a read gives up after too many idle attempts."""
    pass


class ReadCancelledError(StreamError):
    """Raised when a read is abandoned because its owner is stopping."""
    pass


# Framing / decoding

class FrameError(MindWaveError):
    """Base class for recoverable framing errors."""
    pass


class ChecksumError(FrameError):
    """Raised when a frame's checksum byte does not match its payload."""
    def __init__(self, expected: int, received: int):
        super().__init__(
            f"Checksum mismatch: expected 0x{expected:02X}, got 0x{received:02X}"
        )
        self.expected = expected
        self.received = received


class ZeroLengthError(FrameError):
    """Raised when a frame header announces an empty payload."""
    pass


class MalformedPayloadError(MindWaveError):
    """Raised when a payload's records do not line up with its length."""
    pass


class DisconnectedError(MindWaveError):
    """Raised when the dongle reports that the headset dropped the link."""
    pass


# Handshake

class ConnectError(MindWaveError):
    """Base class for failures returned by MindWave.connect()."""
    pass


class HeadsetNotFoundError(ConnectError):
    """The requested headset did not answer."""
    pass


class NoHeadsetAvailableError(ConnectError):
    """Autoconnect found no headset at all."""
    pass


class HeadsetDisconnectedError(ConnectError):
    """The headset disconnected while pairing."""
    pass


class RequestDeniedError(ConnectError):
    """The dongle refused the connect request."""
    pass


class UnexpectedReplyError(ConnectError):
    """The dongle answered with an unknown or truncated reply."""
    def __init__(self, message, payload: bytes = b""):
        super().__init__(message)
        self.payload = payload


class ConnectionBusyError(ConnectError):
    """A handshake or tear-down is already in progress."""
    pass


# Port discovery

class DongleNotFoundError(MindWaveError):
    """Raised when no matching dongle could be found."""
    pass


class MultipleDonglesError(MindWaveError):
    """Raised when more than one matching dongle is found."""
    def __init__(self, message, devices):
        super().__init__(message)
        self.devices = devices  # list[DongleInfo]
