"""
Modbus RTU Timing Module
Silent intervals between frames, scaled by baud rate
"""

from typing import Optional, Tuple

from modrtu.config import (
    DEFAULT_DELAY_MULTIPLIER, MAX_TIMED_BAUDRATE,
    FIXED_CHARACTER_TIME_US, FIXED_FRAME_TIME_US
)


def character_and_frame_time(baudrate: Optional[int]) -> Tuple[float, float]:
    """
    Character time (1.5 chars) and frame time (3.5 chars) in microseconds.

    Above 19200 baud the Modbus serial line spec fixes these at 750us and
    1750us; unknown or non-positive baud rates use the same values.
    """
    if not baudrate or baudrate <= 0 or baudrate > MAX_TIMED_BAUDRATE:
        return float(FIXED_CHARACTER_TIME_US), float(FIXED_FRAME_TIME_US)
    return 15000000 / baudrate, 35000000 / baudrate


def calculate_delay(baudrate: Optional[int], chars: int,
                    multiplier: float = DEFAULT_DELAY_MULTIPLIER) -> float:
    """
    Time to wait between writing a request and reading its response

    Args:
        baudrate: Line speed in baud
        chars: Request length plus expected response length
        multiplier: Safety factor for slow adapters and USB bridges

    Returns:
        float: Delay in seconds
    """
    character_delay, frame_delay = character_and_frame_time(baudrate)
    return (character_delay * chars + frame_delay) * multiplier / 1000000
