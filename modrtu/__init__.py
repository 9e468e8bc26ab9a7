"""
modrtu - Modbus RTU master for half-duplex serial links
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

__version__ = '0.2.0'

# Configure logging
logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO'),
    format=os.environ.get(
        'LOG_FORMAT',
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
)
logger = logging.getLogger(__name__)


def load_env_files():
    """Load environment variables from .env files in project directories."""
    # Try to load from current directory
    if load_dotenv(dotenv_path='.env'):
        logger.debug('Loaded .env from current directory')

    # Try to load from project root
    root_env = Path(__file__).parent.parent / '.env'
    if root_env.exists() and load_dotenv(dotenv_path=root_env):
        logger.debug(f'Loaded .env from {root_env}')


# Load environment variables before config reads them
load_env_files()

# Import components after environment is configured
from modrtu.config import ClientConfig, FunctionCode  # noqa: E402
from modrtu.exceptions import (  # noqa: E402
    ModbusError, ValidationError, TransportError, FlushError, WriteError,
    ShortWriteError, ReadError, ModbusTimeoutError, FrameError, CrcError,
    ModbusExceptionError
)
from modrtu.rtu import ModbusRTU, SerialTransport, Transport  # noqa: E402

__all__ = [
    'ModbusRTU',
    'SerialTransport',
    'Transport',
    'ClientConfig',
    'FunctionCode',
    'ModbusError',
    'ValidationError',
    'TransportError',
    'FlushError',
    'WriteError',
    'ShortWriteError',
    'ReadError',
    'ModbusTimeoutError',
    'FrameError',
    'CrcError',
    'ModbusExceptionError',
    'load_env_files'
]
