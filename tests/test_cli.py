"""
Tests for the modrtu command line entry point
"""

import io
import json
import os
import unittest
from unittest.mock import patch, MagicMock

import serial

from modrtu.__main__ import main
from modrtu.rtu import crc16


def run_cli(argv, response=b''):
    transport = MagicMock()
    transport.baudrate = 9600
    transport.write.side_effect = len
    transport.read.return_value = response

    with patch('modrtu.__main__.SerialTransport.open', return_value=transport) as mock_open, \
            patch('modrtu.rtu.base.time.sleep'), \
            patch('sys.stdout', new_callable=io.StringIO) as stdout:
        code = main(argv)

    output = stdout.getvalue()
    return code, json.loads(output), transport, mock_open


class TestCLI(unittest.TestCase):

    def test_read_holding_registers(self):
        code, output, transport, mock_open = run_cli(
            ['--port', '/dev/ttyUSB1', 'rhr', '1', '0', '2'],
            crc16(b'\x01\x03\x04\x00\x0a\x00\x0b')
        )

        self.assertEqual(code, 0)
        self.assertEqual(output['registers'], [10, 11])
        self.assertTrue(output['success'])
        mock_open.assert_called_once_with('/dev/ttyUSB1', baudrate=9600, timeout=1.0)
        transport.__exit__.assert_called_once()

    def test_read_coils_unpacks_states(self):
        code, output, _, _ = run_cli(['rc', '1', '0', '3'], crc16(b'\x01\x01\x01\x05'))

        self.assertEqual(code, 0)
        self.assertEqual(output['raw'], '05')
        self.assertEqual(output['states'], [True, False, True])

    def test_write_coil(self):
        code, output, transport, _ = run_cli(['wc', '10', '4', 'off'],
                                             crc16(b'\x0a\x05\x00\x04\x00\x00'))

        self.assertEqual(code, 0)
        self.assertFalse(output['state'])
        self.assertEqual(transport.write.call_args[0][0][4:6], b'\x00\x00')

    def test_write_multiple_registers(self):
        code, _, transport, _ = run_cli(['wmr', '1', '0x10', '1', '0x0203'],
                                        crc16(b'\x01\x10\x00\x10\x00\x02'))

        self.assertEqual(code, 0)
        self.assertEqual(transport.write.call_args[0][0][:-2],
                         b'\x01\x10\x00\x10\x00\x02\x04\x00\x01\x02\x03')

    def test_timeout_reports_failure(self):
        code, output, _, _ = run_cli(['rhr', '1', '0', '1'], b'')

        self.assertEqual(code, 1)
        self.assertFalse(output['success'])
        self.assertEqual(output['error_type'], 'ModbusTimeoutError')

    @patch.dict(os.environ, {'MODBUS_MAX_SLAVE': '300'})
    def test_invalid_env_config_reports_failure(self):
        with patch('modrtu.__main__.SerialTransport.open') as mock_open, \
                patch('sys.stdout', new_callable=io.StringIO) as stdout:
            code = main(['rhr', '1', '0', '1'])

        output = json.loads(stdout.getvalue())
        self.assertEqual(code, 1)
        self.assertFalse(output['success'])
        self.assertEqual(output['error_type'], 'ValidationError')
        mock_open.assert_not_called()

    def test_open_failure(self):
        with patch('modrtu.__main__.SerialTransport.open',
                   side_effect=serial.SerialException("no such port")), \
                patch('sys.stdout', new_callable=io.StringIO) as stdout:
            code = main(['rhr', '1', '0', '1'])

        self.assertEqual(code, 1)
        self.assertFalse(json.loads(stdout.getvalue())['success'])


if __name__ == '__main__':
    unittest.main()
