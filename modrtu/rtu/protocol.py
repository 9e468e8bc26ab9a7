"""
Modbus RTU Protocol Module
Handles request building and response parsing for Modbus RTU
"""

import logging
import struct
from typing import List, Sequence, Union

from .crc import crc16, validate_crc
from modrtu.config import (
    FunctionCode, RTU_ADU_MIN_SIZE, EXCEPTION_FLAG, MAX_WRITE_COILS, MAX_WRITE_REGISTERS
)
from modrtu.exceptions import (
    ValidationError, FrameError, CrcError, ModbusExceptionError
)

logger = logging.getLogger(__name__)

# Exception codes
EXCEPTION_ILLEGAL_FUNCTION = 0x01
EXCEPTION_ILLEGAL_ADDRESS = 0x02
EXCEPTION_ILLEGAL_VALUE = 0x03
EXCEPTION_DEVICE_FAILURE = 0x04
EXCEPTION_ACKNOWLEDGE = 0x05
EXCEPTION_DEVICE_BUSY = 0x06
EXCEPTION_MEMORY_PARITY_ERROR = 0x08
EXCEPTION_GATEWAY_PATH_UNAVAILABLE = 0x0A
EXCEPTION_GATEWAY_TARGET_FAILED = 0x0B

# Exception code descriptions
EXCEPTION_DESCRIPTIONS = {
    EXCEPTION_ILLEGAL_FUNCTION: "Illegal function code",
    EXCEPTION_ILLEGAL_ADDRESS: "Illegal data address",
    EXCEPTION_ILLEGAL_VALUE: "Illegal data value",
    EXCEPTION_DEVICE_FAILURE: "Device failure",
    EXCEPTION_ACKNOWLEDGE: "Acknowledge",
    EXCEPTION_DEVICE_BUSY: "Device busy",
    EXCEPTION_MEMORY_PARITY_ERROR: "Memory parity error",
    EXCEPTION_GATEWAY_PATH_UNAVAILABLE: "Gateway path unavailable",
    EXCEPTION_GATEWAY_TARGET_FAILED: "Gateway target device failed to respond"
}

COIL_ON = 0xFF00
COIL_OFF = 0x0000

BytesLike = Union[bytes, bytearray]


def pack_uint16(*values: int) -> bytes:
    """
    Pack 16-bit values big-endian, two bytes each

    Raises:
        ValidationError: If a value does not fit in 16 bits
    """
    for value in values:
        if not 0 <= value <= 0xFFFF:
            raise ValidationError('value', value, f"Value out of 16-bit range: {value}")
    return struct.pack(f'>{len(values)}H', *values)


def _check_byte(field: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValidationError(field, value, f"{field} must fit in one byte, got {value}")


def build_request(unit_id: int, function_code: int, data: bytes) -> bytes:
    """
    Build Modbus RTU request frame

    Args:
        unit_id: Slave unit ID
        function_code: Modbus function code
        data: Request data

    Returns:
        bytes: Complete RTU frame with CRC
    """
    _check_byte('unit_id', unit_id)
    _check_byte('function_code', function_code)
    # [unit_id, function_code, data, crc_low, crc_high]
    request = crc16(bytes([unit_id, function_code]) + data)
    logger.debug(f"Built request: {request.hex()}")
    return request


def build_data_block(address: int, quantity: int, values: BytesLike) -> bytes:
    """Address and quantity, then the byte count and the value block"""
    if len(values) > 0xFF:
        raise ValidationError('values', len(values), f"Value block too long: {len(values)} bytes")
    return pack_uint16(address, quantity) + bytes([len(values)]) + bytes(values)


def build_read_request(unit_id: int, function_code: int, address: int, quantity: int) -> bytes:
    """
    Build request for read functions (coils, discrete inputs, registers)

    Args:
        unit_id: Slave unit ID
        function_code: Function code (0x01, 0x02, 0x03, 0x04)
        address: Starting address
        quantity: Number of items to read

    Returns:
        bytes: Request frame
    """
    if function_code not in (FunctionCode.READ_COILS, FunctionCode.READ_DISCRETE_INPUTS,
                             FunctionCode.READ_HOLDING_REGISTERS, FunctionCode.READ_INPUT_REGISTERS):
        raise ValidationError('function_code', function_code,
                              f"Not a read function: 0x{function_code:02X}")
    return build_request(unit_id, function_code, pack_uint16(address, quantity))


def build_write_single_coil_request(unit_id: int, address: int, on: bool) -> bytes:
    """Build request for write single coil, value 0xFF00 for ON and 0x0000 for OFF"""
    coil_value = COIL_ON if on else COIL_OFF
    return build_request(unit_id, FunctionCode.WRITE_SINGLE_COIL, pack_uint16(address, coil_value))


def build_write_single_register_request(unit_id: int, address: int, value: int) -> bytes:
    """Build request for write single register"""
    return build_request(unit_id, FunctionCode.WRITE_SINGLE_REGISTER, pack_uint16(address, value))


def build_write_multiple_registers_request(unit_id: int, address: int,
                                           quantity: int, values: BytesLike) -> bytes:
    """
    Build request for write multiple registers

    Args:
        unit_id: Slave unit ID
        address: Starting address
        quantity: Number of registers
        values: Register values, big-endian, exactly 2 * quantity bytes

    Returns:
        bytes: Request frame

    Raises:
        ValidationError: If quantity or the value buffer length is out of bounds
    """
    if not 1 <= quantity <= MAX_WRITE_REGISTERS:
        raise ValidationError('quantity', quantity,
                              f"Register quantity must be 1..{MAX_WRITE_REGISTERS}, got {quantity}")
    if len(values) != 2 * quantity:
        raise ValidationError('values', len(values),
                              f"Expected {2 * quantity} value bytes for {quantity} registers, "
                              f"got {len(values)}")
    data = build_data_block(address, quantity, values)
    return build_request(unit_id, FunctionCode.WRITE_MULTIPLE_REGISTERS, data)


def build_write_multiple_coils_request(unit_id: int, address: int, coils: Sequence[bool]) -> bytes:
    """
    Build request for write multiple coils

    Args:
        unit_id: Slave unit ID
        address: Starting address
        coils: Coil states, first coil in the lowest bit

    Returns:
        bytes: Request frame
    """
    count = len(coils)
    if not 1 <= count <= MAX_WRITE_COILS:
        raise ValidationError('quantity', count,
                              f"Coil quantity must be 1..{MAX_WRITE_COILS}, got {count}")
    return build_request(unit_id, FunctionCode.WRITE_MULTIPLE_COILS,
                         build_data_block(address, count, pack_bits(coils)))


def pack_bits(bits: Sequence[bool]) -> bytes:
    """Pack booleans into bytes, first item in the lowest bit"""
    packed = bytearray((len(bits) + 7) // 8)
    for i, bit in enumerate(bits):
        if bit:
            packed[i // 8] |= 1 << (i % 8)
    return bytes(packed)


def unpack_bits(data: BytesLike, count: int = None) -> List[bool]:
    """Expand packed coil/input statuses into booleans, lowest bit first"""
    bits = [bool(byte_val & (1 << bit_pos)) for byte_val in data for bit_pos in range(8)]
    return bits if count is None else bits[:count]


def expected_response_length(adu: BytesLike) -> int:
    """
    Predict the byte length of the normal response to a request frame

    Args:
        adu: Complete request frame

    Returns:
        int: Expected response length in bytes
    """
    length = RTU_ADU_MIN_SIZE
    if len(adu) < 6:
        return length
    try:
        function_code = FunctionCode(adu[1])
    except ValueError:
        return length

    if function_code.is_bit_read:
        count = struct.unpack('>H', adu[4:6])[0]
        length += 1 + (count + 7) // 8
    elif function_code.is_register_read:
        count = struct.unpack('>H', adu[4:6])[0]
        length += 1 + count * 2
    elif function_code.is_write:
        length += 4
    return length


def check_response(response: BytesLike, unit_id: int, function_code: int,
                   check_crc: bool = True) -> bytes:
    """
    Validate the header and CRC of a response

    Args:
        response: Raw response bytes
        unit_id: Slave unit ID of the request
        function_code: Function code of the request
        check_crc: Whether to check the CRC

    Returns:
        bytes: Response without its CRC

    Raises:
        FrameError: On short frames, unit ID or function code mismatch
        ModbusExceptionError: If the slave returned an exception response
        CrcError: If the CRC does not match
    """
    response = bytes(response)
    if len(response) < RTU_ADU_MIN_SIZE:
        raise FrameError(f"Response too short: {len(response)} bytes", response)

    if response[0] != unit_id:
        raise FrameError(f"Unit ID mismatch: expected {unit_id}, got {response[0]}", response)

    if response[1] == function_code | EXCEPTION_FLAG:
        if len(response) < 5:
            raise FrameError("Invalid exception response format", response)
        if check_crc and not validate_crc(response):
            raise CrcError("CRC mismatch in exception response", response)
        exception_code = response[2]
        description = EXCEPTION_DESCRIPTIONS.get(
            exception_code, f"Unknown exception code: {exception_code}"
        )
        raise ModbusExceptionError(function_code, exception_code, description, response)

    if response[1] != function_code:
        raise FrameError(
            f"Function code mismatch: expected {function_code}, got {response[1]}", response
        )

    if check_crc and not validate_crc(response):
        raise CrcError("CRC mismatch", response)

    return response[:-2]


def parse_read_response(response: BytesLike, unit_id: int, function_code: int,
                        check_crc: bool = True) -> bytes:
    """
    Parse a read response down to its data bytes

    Strips unit ID, function code, byte count and CRC.
    """
    frame = check_response(response, unit_id, function_code, check_crc)
    data = frame[3:]
    if len(frame) < 3 or frame[2] != len(data):
        raise FrameError(
            f"Byte count mismatch: header says {frame[2] if len(frame) >= 3 else None}, "
            f"got {len(data)} data bytes",
            response
        )
    return data


def parse_read_registers_response(response: BytesLike, unit_id: int, function_code: int,
                                  check_crc: bool = True) -> List[int]:
    """
    Parse response for read holding/input registers

    Returns:
        List[int]: Register values in order
    """
    data = parse_read_response(response, unit_id, function_code, check_crc)
    if len(data) % 2:
        raise FrameError(f"Odd register data length: {len(data)}", response)
    # Each register is 2 bytes, big-endian
    return list(struct.unpack(f'>{len(data) // 2}H', data))


def parse_write_response(response: BytesLike, unit_id: int, function_code: int,
                         check_crc: bool = True) -> None:
    """
    Validate a write response

    Only the header (and CRC) is checked; the echoed address and
    quantity/value fields are not compared with the request.
    """
    check_response(response, unit_id, function_code, check_crc)
