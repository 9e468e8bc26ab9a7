"""
Modbus RTU Package
CRC, framing, timing and the locked transaction client
"""

# Core classes
from .base import ModbusRTU
from .transport import Transport, SerialTransport

# Protocol functions
from .protocol import (
    build_request, build_read_request,
    build_write_single_coil_request, build_write_single_register_request,
    build_write_multiple_coils_request, build_write_multiple_registers_request,
    expected_response_length, check_response, parse_read_response,
    parse_read_registers_response, parse_write_response,
    pack_uint16, pack_bits, unpack_bits
)

# CRC functions
from .crc import calculate_crc, crc16, validate_crc

# Timing
from .timing import calculate_delay, character_and_frame_time

__all__ = [
    'ModbusRTU',
    'Transport',
    'SerialTransport',
    'build_request',
    'build_read_request',
    'build_write_single_coil_request',
    'build_write_single_register_request',
    'build_write_multiple_coils_request',
    'build_write_multiple_registers_request',
    'expected_response_length',
    'check_response',
    'parse_read_response',
    'parse_read_registers_response',
    'parse_write_response',
    'pack_uint16',
    'pack_bits',
    'unpack_bits',
    'calculate_crc',
    'crc16',
    'validate_crc',
    'calculate_delay',
    'character_and_frame_time'
]
