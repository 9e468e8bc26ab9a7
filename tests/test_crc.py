"""
Tests for modrtu.rtu.crc module
"""

import struct
import unittest

import crcmod.predefined

from modrtu.rtu.crc import calculate_crc, crc16, validate_crc

reference_crc = crcmod.predefined.mkCrcFun('modbus')


class TestCRC(unittest.TestCase):
    """CRC-16/MODBUS calculation"""

    def test_known_vectors(self):
        """Published Modbus request frames"""
        self.assertEqual(crc16(b'\x01\x03\x00\x00\x00\x02')[-2:], b'\xc4\x0b')
        self.assertEqual(crc16(b'\x01\x03\x00\x00\x00\x01')[-2:], b'\x84\x0a')
        self.assertEqual(crc16(b'\x01\x01\x00\x00\x00\x08')[-2:], b'\x3d\xcc')

    def test_matches_reference_implementation(self):
        samples = [
            b'',
            b'\x00',
            b'\xff' * 16,
            bytes(range(256)),
            b'\x0d\x03\x00\x00\x00\x10',
            b'\x0a\x05\x00\x04\x00\x00',
        ]
        for data in samples:
            with self.subTest(data=data.hex()):
                self.assertEqual(calculate_crc(data), reference_crc(data))
                self.assertEqual(crc16(data)[-2:], struct.pack('<H', reference_crc(data)))

    def test_crc16_appends_low_byte_first(self):
        data = b'\x11\x06\x00\x01\x00\x03'
        crc = calculate_crc(data)
        framed = crc16(data)
        self.assertEqual(framed[:-2], data)
        self.assertEqual(framed[-2], crc & 0xFF)
        self.assertEqual(framed[-1], crc >> 8)

    def test_crc16_accepts_bytearray(self):
        self.assertEqual(crc16(bytearray(b'\x01\x03\x00\x00\x00\x02')),
                         b'\x01\x03\x00\x00\x00\x02\xc4\x0b')

    def test_empty_data(self):
        self.assertEqual(calculate_crc(b''), 0xFFFF)

    def test_validate_crc(self):
        self.assertTrue(validate_crc(b'\x01\x03\x00\x00\x00\x02\xc4\x0b'))
        self.assertFalse(validate_crc(b'\x01\x03\x00\x00\x00\x02\x0b\xc4'))
        self.assertFalse(validate_crc(b'\x01\x03'))


if __name__ == '__main__':
    unittest.main()
