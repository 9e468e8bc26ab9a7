"""
Modbus RTU CRC Module
CRC-16/MODBUS (polynomial 0xA001 reflected, initial value 0xFFFF)
"""

from typing import Union

BytesLike = Union[bytes, bytearray]


def calculate_crc(data: BytesLike) -> int:
    """
    Calculate CRC16 for Modbus RTU

    Args:
        data: Frame contents (address + PDU)

    Returns:
        int: 16-bit CRC register value
    """
    crc = 0xFFFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 0x0001:
                crc = (crc >> 1) ^ 0xA001
            else:
                crc >>= 1
    return crc


def crc16(data: BytesLike) -> bytes:
    """Return data with its CRC appended, low byte first"""
    crc = calculate_crc(data)
    return bytes(data) + bytes([crc & 0xFF, (crc >> 8) & 0xFF])


def validate_crc(frame: BytesLike) -> bool:
    """
    Check the trailing CRC of a complete frame

    Args:
        frame: Frame including its two CRC bytes

    Returns:
        bool: True if the CRC matches
    """
    if len(frame) < 3:
        return False
    received = frame[-2] | (frame[-1] << 8)
    return received == calculate_crc(frame[:-2])
