"""
Modbus RTU Exceptions
Error hierarchy raised by the RTU client
"""

from typing import Any, Optional


class ModbusError(Exception):
    """Base class for every error raised by modrtu"""


class ValidationError(ModbusError, ValueError):
    """Request parameters outside protocol bounds, raised before any I/O"""

    def __init__(self, field: str, value: Any, message: str = None):
        self.field = field
        self.value = value
        super().__init__(message or f"Invalid {field}: {value!r}")


class TransportError(ModbusError):
    """Underlying byte transport failed"""


class FlushError(TransportError):
    """Discarding the transport input buffer failed"""


class WriteError(TransportError):
    """Writing the request to the transport failed"""


class ShortWriteError(WriteError):
    """
    The transport accepted fewer bytes than requested.
    Link state is undefined afterwards; reopen the transport before reuse.
    """

    def __init__(self, requested: int, written: int):
        self.requested = requested
        self.written = written
        super().__init__(f"Short write: {written} of {requested} bytes sent")


class ReadError(TransportError):
    """Reading the response from the transport failed"""


class ModbusTimeoutError(ModbusError, TimeoutError):
    """No response arrived within the transport read timeout"""

    def __init__(self, unit_id: int, function_code: int):
        self.unit_id = unit_id
        self.function_code = function_code
        super().__init__(
            f"No response from unit {unit_id} to function 0x{function_code:02X}"
        )


class FrameError(ModbusError):
    """Response frame is too short, malformed, or from an unexpected responder"""

    def __init__(self, reason: str, response: Optional[bytes] = None):
        self.reason = reason
        self.response = bytes(response) if response is not None else None
        detail = f" (response: {self.response.hex()})" if self.response is not None else ""
        super().__init__(f"{reason}{detail}")


class CrcError(FrameError):
    """Response CRC does not match its contents"""


class ModbusExceptionError(FrameError):
    """Slave answered with a Modbus exception response"""

    def __init__(self, function_code: int, exception_code: int,
                 description: str, response: Optional[bytes] = None):
        self.function_code = function_code
        self.exception_code = exception_code
        self.description = description
        super().__init__(
            f"Modbus exception for function 0x{function_code:02X}: "
            f"{description} (code: {exception_code})",
            response
        )
