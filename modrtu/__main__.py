"""
modrtu - Main entry point for running as a module

    python -m modrtu --port /dev/ttyUSB0 --baudrate 9600 rhr 1 0 4
"""

import sys
import json
import argparse
import logging

from . import load_env_files
from .config import ClientConfig, DEFAULT_PORT, DEFAULT_BAUDRATE, DEFAULT_TIMEOUT
from .exceptions import ModbusError
from .rtu import ModbusRTU, SerialTransport, pack_uint16, unpack_bits

logger = logging.getLogger(__name__)


def _int(value: str) -> int:
    return int(value, 0)


def _on_off(value: str) -> bool:
    value = value.lower()
    if value in ('1', 'on', 'true'):
        return True
    if value in ('0', 'off', 'false'):
        return False
    raise argparse.ArgumentTypeError(f"expected on/off, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='modrtu', description='modrtu - Modbus RTU master')
    parser.add_argument('--port', default=DEFAULT_PORT, help='Modbus serial port')
    parser.add_argument('--baudrate', type=int, default=DEFAULT_BAUDRATE, help='Baud rate')
    parser.add_argument('--timeout', type=float, default=DEFAULT_TIMEOUT, help='Read timeout in seconds')
    parser.add_argument('--verbose', action='store_true', help='Log every frame sent and received')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    for name, help_text in (('rc', 'Read coils'), ('rdi', 'Read discrete inputs'),
                            ('rhr', 'Read holding registers'), ('rir', 'Read input registers')):
        cmd = subparsers.add_parser(name, help=help_text)
        cmd.add_argument('unit', type=_int)
        cmd.add_argument('address', type=_int)
        cmd.add_argument('quantity', type=_int)

    cmd = subparsers.add_parser('wc', help='Write single coil')
    cmd.add_argument('unit', type=_int)
    cmd.add_argument('address', type=_int)
    cmd.add_argument('state', type=_on_off)

    cmd = subparsers.add_parser('wr', help='Write single register')
    cmd.add_argument('unit', type=_int)
    cmd.add_argument('address', type=_int)
    cmd.add_argument('value', type=_int)

    cmd = subparsers.add_parser('wmr', help='Write multiple registers')
    cmd.add_argument('unit', type=_int)
    cmd.add_argument('address', type=_int)
    cmd.add_argument('values', type=_int, nargs='+')

    cmd = subparsers.add_parser('wmc', help='Write multiple coils')
    cmd.add_argument('unit', type=_int)
    cmd.add_argument('address', type=_int)
    cmd.add_argument('states', type=_on_off, nargs='+')

    return parser


def execute_command(client: ModbusRTU, args: argparse.Namespace) -> dict:
    """Run one parsed command against a client and describe the result"""
    result = {'command': args.command, 'unit': args.unit, 'address': args.address}

    if args.command in ('rc', 'rdi'):
        read = client.read_coils if args.command == 'rc' else client.read_discrete_inputs
        data = read(args.unit, args.address, args.quantity)
        result['raw'] = data.hex()
        result['states'] = unpack_bits(data, args.quantity)
    elif args.command in ('rhr', 'rir'):
        read = client.read_holding_registers if args.command == 'rhr' else client.read_input_registers
        result['registers'] = read(args.unit, args.address, args.quantity)
    elif args.command == 'wc':
        client.write_single_coil(args.unit, args.address, args.state)
        result['state'] = args.state
    elif args.command == 'wr':
        client.write_single_register(args.unit, args.address, args.value)
        result['value'] = args.value
    elif args.command == 'wmr':
        client.write_multiple_registers(args.unit, args.address, len(args.values),
                                        pack_uint16(*args.values))
        result['values'] = args.values
    elif args.command == 'wmc':
        client.write_multiple_coils(args.unit, args.address, args.states)
        result['states'] = args.states

    result['success'] = True
    return result


def main(argv=None) -> int:
    """Main entry point for the modrtu module"""
    load_env_files()
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = ClientConfig.from_env(baudrate=args.baudrate)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        print(json.dumps({'command': args.command, 'success': False,
                          'error': str(e), 'error_type': type(e).__name__}, indent=2))
        return 1

    try:
        transport = SerialTransport.open(args.port, baudrate=args.baudrate, timeout=args.timeout)
    except OSError as e:
        logger.error(f"Failed to open {args.port}: {e}")
        print(json.dumps({'command': args.command, 'success': False, 'error': str(e)}, indent=2))
        return 1

    with transport:
        client = ModbusRTU(transport, config)
        if args.verbose:
            client.enable_log()
        try:
            response = execute_command(client, args)
        except ModbusError as e:
            response = {'command': args.command, 'success': False,
                        'error': str(e), 'error_type': type(e).__name__}

    print(json.dumps(response, indent=2))
    return 0 if response['success'] else 1


if __name__ == '__main__':
    sys.exit(main())
