"""
modrtu configuration
Function codes, protocol limits and environment driven defaults
"""

import os
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from modrtu.exceptions import ValidationError


class FunctionCode(IntEnum):
    """Modbus function codes supported by the RTU client"""

    READ_COILS = 0x01
    READ_DISCRETE_INPUTS = 0x02
    READ_HOLDING_REGISTERS = 0x03
    READ_INPUT_REGISTERS = 0x04
    WRITE_SINGLE_COIL = 0x05
    WRITE_SINGLE_REGISTER = 0x06
    WRITE_MULTIPLE_COILS = 0x0F
    WRITE_MULTIPLE_REGISTERS = 0x10

    @property
    def is_bit_read(self) -> bool:
        return self in (FunctionCode.READ_COILS, FunctionCode.READ_DISCRETE_INPUTS)

    @property
    def is_register_read(self) -> bool:
        return self in (FunctionCode.READ_HOLDING_REGISTERS, FunctionCode.READ_INPUT_REGISTERS)

    @property
    def is_read(self) -> bool:
        return self.is_bit_read or self.is_register_read

    @property
    def is_write(self) -> bool:
        return not self.is_read


# Frame layout
RTU_ADU_MIN_SIZE = 4  # address(1) + function code(1) + crc(2)
EXCEPTION_FLAG = 0x80
BROADCAST_ADDRESS = 0

# Quantity limits per request
MAX_READ_BITS = 2000
MAX_READ_REGISTERS = 125
MAX_WRITE_COILS = 1968
MAX_WRITE_REGISTERS = 123

# Timing
DEFAULT_PRE_SEND_DELAY = 0.1  # seconds, RTS/line driver turnaround
DEFAULT_DELAY_MULTIPLIER = 2.0
MAX_TIMED_BAUDRATE = 19200
FIXED_CHARACTER_TIME_US = 750
FIXED_FRAME_TIME_US = 1750


def _env_str(name: str, default):
    """Environment value, or default when unset or blank"""
    value = os.environ.get(name, '').strip()
    return value if value else default


def _env_int(name: str, default):
    value = _env_str(name, None)
    return int(value) if value is not None else default


def _env_float(name: str, default):
    value = _env_str(name, None)
    return float(value) if value is not None else default


def _env_bool(name: str, default: bool) -> bool:
    value = _env_str(name, None)
    if value is None:
        return default
    return value.lower() in ('1', 'true', 'yes', 'on')


# Serial defaults, overridable from the environment / .env
DEFAULT_PORT = _env_str('MODBUS_PORT', '/dev/ttyUSB0')
DEFAULT_BAUDRATE = _env_int('MODBUS_BAUDRATE', 9600)
DEFAULT_TIMEOUT = _env_float('MODBUS_TIMEOUT', 1.0)
DEFAULT_PARITY = _env_str('MODBUS_PARITY', 'N')
DEFAULT_STOPBITS = _env_int('MODBUS_STOPBITS', 1)
DEFAULT_BYTESIZE = _env_int('MODBUS_BYTESIZE', 8)


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings for a ModbusRTU client, fixed at construction.

    Args:
        baudrate: Baud rate used by the timing model (None: ask the transport)
        delay_multiplier: Safety factor applied to the inter-frame delay
        pre_send_delay: Seconds slept before every write
        min_slave: Lowest accepted slave address
        max_slave: Highest accepted slave address
        check_crc: Reject responses whose CRC does not match
    """

    baudrate: Optional[int] = None
    delay_multiplier: float = DEFAULT_DELAY_MULTIPLIER
    pre_send_delay: float = DEFAULT_PRE_SEND_DELAY
    min_slave: int = 1
    max_slave: int = 247
    check_crc: bool = True

    def __post_init__(self):
        if not 0 <= self.min_slave <= self.max_slave <= 247:
            raise ValidationError(
                'slave bounds', (self.min_slave, self.max_slave),
                f"Slave bounds must satisfy 0 <= min <= max <= 247, "
                f"got {self.min_slave}..{self.max_slave}"
            )
        if self.delay_multiplier <= 0:
            raise ValidationError('delay_multiplier', self.delay_multiplier)
        if self.pre_send_delay < 0:
            raise ValidationError('pre_send_delay', self.pre_send_delay)

    @classmethod
    def from_env(cls, **overrides) -> 'ClientConfig':
        """Build a config from MODBUS_* environment variables"""
        values = {
            'baudrate': _env_int('MODBUS_BAUDRATE', None),
            'delay_multiplier': _env_float('MODBUS_DELAY_MULTIPLIER', DEFAULT_DELAY_MULTIPLIER),
            'pre_send_delay': _env_float('MODBUS_PRE_SEND_DELAY', DEFAULT_PRE_SEND_DELAY),
            'min_slave': _env_int('MODBUS_MIN_SLAVE', 1),
            'max_slave': _env_int('MODBUS_MAX_SLAVE', 247),
            'check_crc': _env_bool('MODBUS_CHECK_CRC', True),
        }
        values.update(overrides)
        return cls(**values)
