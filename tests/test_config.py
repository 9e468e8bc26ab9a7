"""
Tests for modrtu.config module
"""

import os
import subprocess
import sys
import unittest
from dataclasses import FrozenInstanceError
from unittest.mock import patch

from modrtu import config as config_module
from modrtu.config import ClientConfig, FunctionCode
from modrtu.exceptions import ValidationError

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class TestClientConfig(unittest.TestCase):

    def test_defaults(self):
        config = ClientConfig()

        self.assertIsNone(config.baudrate)
        self.assertEqual(config.delay_multiplier, 2.0)
        self.assertEqual(config.pre_send_delay, 0.1)
        self.assertEqual((config.min_slave, config.max_slave), (1, 247))
        self.assertTrue(config.check_crc)

    def test_immutable(self):
        config = ClientConfig()
        with self.assertRaises(FrozenInstanceError):
            config.baudrate = 9600

    def test_invalid_bounds(self):
        with self.assertRaises(ValidationError):
            ClientConfig(min_slave=10, max_slave=5)
        with self.assertRaises(ValidationError):
            ClientConfig(max_slave=248)
        with self.assertRaises(ValidationError):
            ClientConfig(delay_multiplier=0)

    @patch.dict(os.environ, {
        'MODBUS_BAUDRATE': '4800',
        'MODBUS_DELAY_MULTIPLIER': '3',
        'MODBUS_PRE_SEND_DELAY': '0.05',
        'MODBUS_MAX_SLAVE': '32',
        'MODBUS_CHECK_CRC': 'false',
    })
    def test_from_env(self):
        config = ClientConfig.from_env()

        self.assertEqual(config.baudrate, 4800)
        self.assertEqual(config.delay_multiplier, 3.0)
        self.assertEqual(config.pre_send_delay, 0.05)
        self.assertEqual(config.max_slave, 32)
        self.assertFalse(config.check_crc)

    @patch.dict(os.environ, {'MODBUS_BAUDRATE': '4800'})
    def test_from_env_overrides(self):
        self.assertEqual(ClientConfig.from_env(baudrate=19200).baudrate, 19200)


class TestEnvDefaults(unittest.TestCase):

    @patch.dict(os.environ, {
        'MODBUS_BAUDRATE': '',
        'MODBUS_DELAY_MULTIPLIER': '',
        'MODBUS_PRE_SEND_DELAY': '  ',
        'MODBUS_MIN_SLAVE': '',
        'MODBUS_MAX_SLAVE': '',
        'MODBUS_CHECK_CRC': '',
    })
    def test_blank_values_fall_back_to_defaults(self):
        config = ClientConfig.from_env()

        self.assertEqual(config, ClientConfig())

    @patch.dict(os.environ, {'MODBUS_BAUDRATE': '', 'MODBUS_TIMEOUT': '', 'MODBUS_PORT': ''})
    def test_blank_serial_defaults(self):
        self.assertEqual(config_module._env_int('MODBUS_BAUDRATE', 9600), 9600)
        self.assertEqual(config_module._env_float('MODBUS_TIMEOUT', 1.0), 1.0)
        self.assertEqual(config_module._env_str('MODBUS_PORT', '/dev/ttyUSB0'), '/dev/ttyUSB0')

    def test_import_with_blank_baudrate(self):
        env = dict(os.environ, MODBUS_BAUDRATE='', MODBUS_TIMEOUT='')
        result = subprocess.run(
            [sys.executable, '-c', 'import modrtu; print(modrtu.config.DEFAULT_BAUDRATE)'],
            env=env, cwd=PROJECT_ROOT, capture_output=True, text=True
        )

        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertEqual(result.stdout.strip(), '9600')


class TestFunctionCode(unittest.TestCase):

    def test_values(self):
        self.assertEqual(FunctionCode.READ_COILS, 0x01)
        self.assertEqual(FunctionCode.WRITE_SINGLE_COIL, 0x05)
        self.assertEqual(FunctionCode.WRITE_MULTIPLE_REGISTERS, 0x10)

    def test_kinds(self):
        self.assertTrue(FunctionCode.READ_DISCRETE_INPUTS.is_bit_read)
        self.assertTrue(FunctionCode.READ_INPUT_REGISTERS.is_register_read)
        self.assertTrue(FunctionCode.WRITE_MULTIPLE_COILS.is_write)
        self.assertFalse(FunctionCode.READ_HOLDING_REGISTERS.is_write)


if __name__ == '__main__':
    unittest.main()
