"""
Base Modbus RTU Communication Module
Core implementation of ModbusRTU class: one locked request/response
transaction at a time over a half-duplex serial link
"""

import logging
import time
from threading import Lock
from typing import Callable, List, Optional, Sequence, Union

from .protocol import (
    build_read_request, build_write_single_coil_request,
    build_write_single_register_request, build_write_multiple_registers_request,
    build_write_multiple_coils_request, expected_response_length,
    parse_read_response, parse_read_registers_response, parse_write_response
)
from .timing import calculate_delay
from .transport import Transport
from modrtu.config import (
    FunctionCode, ClientConfig, BROADCAST_ADDRESS,
    MAX_READ_BITS, MAX_READ_REGISTERS
)
from modrtu.exceptions import (
    ValidationError, FlushError, WriteError, ShortWriteError, ReadError,
    ModbusTimeoutError, FrameError
)

logger = logging.getLogger(__name__)

TraceCallback = Callable[[str, bytes], None]


class ModbusRTU:
    """
    Modbus RTU master over a byte transport.

    Every public operation runs as a single transaction (guard delay, flush,
    write, inter-frame delay, bounded read) while holding the client lock, so
    concurrent callers are serialized end to end. Nothing is retried here.
    """

    def __init__(self,
                 transport: Transport,
                 config: ClientConfig = None,
                 device_logger: logging.Logger = None,
                 trace: Optional[TraceCallback] = None):
        """
        Initialize ModbusRTU client.

        Args:
            transport: Open byte transport (flush/write/read)
            config: Client settings (default: ClientConfig())
            device_logger: Logger for device-specific logs (if None, will use module logger)
            trace: Called with ('send', frame) before writing and ('receive', frame) after reading
        """
        self.transport = transport
        self.config = config if config is not None else ClientConfig()
        self.device_logger = device_logger if device_logger is not None else logger
        self.trace = trace
        self.lock = Lock()  # One transaction on the line at a time
        self._log_frames = False

    @property
    def baudrate(self) -> Optional[int]:
        if self.config.baudrate is not None:
            return self.config.baudrate
        return getattr(self.transport, 'baudrate', None)

    def enable_log(self) -> None:
        """Log every sent and received frame at INFO level"""
        self._log_frames = True

    def disable_log(self) -> None:
        self._log_frames = False

    def _emit(self, direction: str, frame: bytes) -> None:
        if self._log_frames:
            self.device_logger.info(f"{direction} [{frame.hex(' ')}]")
        if self.trace is not None:
            try:
                self.trace(direction, frame)
            except Exception:
                self.device_logger.exception(f"Trace callback failed on {direction}")

    def _check_unit(self, unit_id: int, allow_broadcast: bool = False) -> None:
        if not self.config.min_slave <= unit_id <= self.config.max_slave:
            raise ValidationError(
                'unit_id', unit_id,
                f"Unit ID must be {self.config.min_slave}..{self.config.max_slave}, got {unit_id}"
            )
        if unit_id == BROADCAST_ADDRESS and not allow_broadcast:
            raise ValidationError('unit_id', unit_id, "Broadcast address cannot be used for reads")

    @staticmethod
    def _check_quantity(quantity: int, maximum: int) -> None:
        if not 1 <= quantity <= maximum:
            raise ValidationError('quantity', quantity,
                                  f"Quantity must be 1..{maximum}, got {quantity}")

    def send_request(self, request: bytes) -> bytes:
        """
        Run one request/response transaction.

        Args:
            request: Complete request frame (unit ID, PDU, CRC)

        Returns:
            bytes: Raw response, or b'' for a broadcast request

        Raises:
            FlushError, WriteError, ReadError: Transport failures
            ShortWriteError: Transport accepted only part of the request
            ModbusTimeoutError: Nothing was read before the transport timed out
        """
        unit_id, function_code = request[0], request[1]

        with self.lock:
            time.sleep(self.config.pre_send_delay)

            try:
                self.transport.flush()
            except OSError as e:
                raise FlushError(f"Failed to flush input buffer: {e}") from e

            self._emit('send', request)
            try:
                written = self.transport.write(request)
            except OSError as e:
                raise WriteError(f"Failed to write request: {e}") from e
            if written != len(request):
                self.device_logger.error(f"Short write: {written} of {len(request)} bytes")
                raise ShortWriteError(len(request), written or 0)

            if unit_id == BROADCAST_ADDRESS:
                # Slaves never answer a broadcast, wait out the turnaround only
                time.sleep(calculate_delay(self.baudrate, len(request), self.config.delay_multiplier))
                return b''

            bytes_to_read = expected_response_length(request)
            delay = calculate_delay(self.baudrate, len(request) + bytes_to_read,
                                    self.config.delay_multiplier)
            self.device_logger.debug(
                f"Waiting {delay * 1000:.2f}ms for {bytes_to_read} bytes from unit {unit_id}"
            )
            time.sleep(delay)

            try:
                response = self.transport.read(bytes_to_read)
            except OSError as e:
                raise ReadError(f"Failed to read response: {e}") from e
            if not response:
                self.device_logger.warning(
                    f"No response received from unit {unit_id}, function {function_code}"
                )
                raise ModbusTimeoutError(unit_id, function_code)

            response = bytes(response)
            self._emit('receive', response)
            return response

    def _decode(self, parser, response: bytes, unit_id: int, function_code: int):
        try:
            return parser(response, unit_id, function_code, self.config.check_crc)
        except FrameError as e:
            self.device_logger.warning(f"Invalid response from unit {unit_id}: {e}")
            raise

    def _read_bits(self, function_code: FunctionCode, unit_id: int,
                   address: int, quantity: int) -> bytes:
        self._check_unit(unit_id)
        self._check_quantity(quantity, MAX_READ_BITS)
        request = build_read_request(unit_id, function_code, address, quantity)
        response = self.send_request(request)
        return self._decode(parse_read_response, response, unit_id, function_code)

    def _read_registers(self, function_code: FunctionCode, unit_id: int,
                        address: int, quantity: int) -> List[int]:
        self._check_unit(unit_id)
        self._check_quantity(quantity, MAX_READ_REGISTERS)
        request = build_read_request(unit_id, function_code, address, quantity)
        response = self.send_request(request)
        return self._decode(parse_read_registers_response, response, unit_id, function_code)

    def _write(self, request: bytes) -> None:
        unit_id, function_code = request[0], request[1]
        response = self.send_request(request)
        if unit_id != BROADCAST_ADDRESS:
            self._decode(parse_write_response, response, unit_id, function_code)

    def read_coils(self, unit_id: int, address: int, quantity: int) -> bytes:
        """
        Read 1 to 2000 contiguous coils.

        Returns:
            bytes: Packed coil statuses, first coil in the lowest bit of the first byte
        """
        return self._read_bits(FunctionCode.READ_COILS, unit_id, address, quantity)

    def read_discrete_inputs(self, unit_id: int, address: int, quantity: int) -> bytes:
        """Read 1 to 2000 contiguous discrete inputs, packed like read_coils"""
        return self._read_bits(FunctionCode.READ_DISCRETE_INPUTS, unit_id, address, quantity)

    def read_holding_registers(self, unit_id: int, address: int, quantity: int) -> List[int]:
        """Read 1 to 125 contiguous holding registers"""
        return self._read_registers(FunctionCode.READ_HOLDING_REGISTERS, unit_id, address, quantity)

    def read_input_registers(self, unit_id: int, address: int, quantity: int) -> List[int]:
        """Read 1 to 125 contiguous input registers"""
        return self._read_registers(FunctionCode.READ_INPUT_REGISTERS, unit_id, address, quantity)

    def write_single_coil(self, unit_id: int, address: int, on: bool) -> None:
        """Switch a single coil ON or OFF"""
        self._check_unit(unit_id, allow_broadcast=True)
        self._write(build_write_single_coil_request(unit_id, address, on))

    def write_single_register(self, unit_id: int, address: int, value: int) -> None:
        """Write a single holding register"""
        self._check_unit(unit_id, allow_broadcast=True)
        self._write(build_write_single_register_request(unit_id, address, value))

    def write_multiple_registers(self, unit_id: int, address: int, quantity: int,
                                 values: Union[bytes, bytearray]) -> None:
        """
        Write 1 to 123 contiguous holding registers.

        Args:
            unit_id: Slave unit ID
            address: Starting address
            quantity: Number of registers
            values: Big-endian register values, exactly 2 * quantity bytes
        """
        self._check_unit(unit_id, allow_broadcast=True)
        self._write(build_write_multiple_registers_request(unit_id, address, quantity, values))

    def write_multiple_coils(self, unit_id: int, address: int, coils: Sequence[bool]) -> None:
        """Write 1 to 1968 contiguous coils"""
        self._check_unit(unit_id, allow_broadcast=True)
        self._write(build_write_multiple_coils_request(unit_id, address, coils))
