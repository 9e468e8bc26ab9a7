"""
Modbus RTU Transport Module
Byte transport contract and the pyserial implementation of it
"""

import logging
from typing import Optional, Protocol

import serial

from modrtu.config import (
    DEFAULT_BAUDRATE, DEFAULT_TIMEOUT, DEFAULT_PARITY,
    DEFAULT_STOPBITS, DEFAULT_BYTESIZE
)

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """
    What the RTU client needs from a serial link.

    read() must honour its own read timeout and return b'' when it expires.
    """

    baudrate: Optional[int]

    def flush(self) -> None:
        ...

    def write(self, data: bytes) -> int:
        ...

    def read(self, size: int) -> bytes:
        ...


class SerialTransport:
    """Transport over an already configured serial.Serial port"""

    def __init__(self, serial_conn: serial.Serial):
        self.serial_conn = serial_conn

    @classmethod
    def open(cls,
             port: str,
             baudrate: int = DEFAULT_BAUDRATE,
             timeout: float = DEFAULT_TIMEOUT,
             parity: str = DEFAULT_PARITY,
             stopbits: int = DEFAULT_STOPBITS,
             bytesize: int = DEFAULT_BYTESIZE) -> 'SerialTransport':
        """
        Open a serial port and wrap it

        Args:
            port: Serial port path
            baudrate: Baud rate
            timeout: Read timeout in seconds
            parity: Parity setting (N/E/O)
            stopbits: Stop bits (1 or 2)
            bytesize: Data bits (7 or 8)

        Raises:
            serial.SerialException: If the port cannot be opened
        """
        serial_conn = serial.Serial(
            port=port,
            baudrate=baudrate,
            timeout=timeout,
            parity=parity,
            stopbits=stopbits,
            bytesize=bytesize
        )
        logger.info(f"Opened {port} at {baudrate} baud")
        return cls(serial_conn)

    @property
    def baudrate(self) -> int:
        return self.serial_conn.baudrate

    def flush(self) -> None:
        self.serial_conn.reset_input_buffer()

    def write(self, data: bytes) -> int:
        return self.serial_conn.write(data)

    def read(self, size: int) -> bytes:
        return self.serial_conn.read(size)

    def close(self) -> None:
        if self.serial_conn.is_open:
            self.serial_conn.close()
            logger.info(f"Closed {self.serial_conn.port}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Propagate exceptions
