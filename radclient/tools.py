# tools.py
#
# Attribute value encoders and decoders
from netaddr import IPAddress
from netaddr import IPNetwork
import struct


def encode_string(string):
    if not isinstance(string, (bytes, str)):
        raise TypeError('Can only encode text or binary strings')
    if isinstance(string, bytes):
        value = string
    else:
        value = string.encode('utf-8')
    if len(value) > 253:
        raise ValueError('Can only encode strings of <= 253 characters')
    return value


def encode_octets(string):
    if not isinstance(string, bytes):
        raise TypeError('Octets have to be a binary string')
    if len(string) > 253:
        raise ValueError('Can only encode strings of <= 253 characters')
    return string


def encode_address(addr):
    if not isinstance(addr, str):
        raise TypeError('Address has to be a string')
    return IPAddress(addr, 4).packed


def encode_ipv6_prefix(addr):
    if not isinstance(addr, str):
        raise TypeError('IPv6 Prefix has to be a string')
    ip = IPNetwork(addr, version=6)
    return struct.pack('2B', 0, ip.prefixlen) + ip.ip.packed


def encode_ipv6_address(addr):
    if not isinstance(addr, str):
        raise TypeError('IPv6 Address has to be a string')
    return IPAddress(addr, 6).packed


def encode_integer(num, fmt='!I'):
    if isinstance(num, bool):
        raise TypeError('Can not encode boolean as integer')
    try:
        num = int(num)
    except (TypeError, ValueError):
        raise TypeError('Can not encode non-integer as integer')
    try:
        return struct.pack(fmt, num)
    except struct.error:
        raise ValueError('Integer %d out of range' % num)


def encode_date(num):
    if not isinstance(num, int):
        raise TypeError('Can not encode non-integer as date')
    return struct.pack('!I', num)


def decode_string(string):
    try:
        return string.decode('utf-8')
    except UnicodeDecodeError:
        return string


def decode_octets(string):
    return string


def decode_address(addr):
    return '.'.join([str(x) for x in struct.unpack('BBBB', addr)])


def decode_ipv6_prefix(addr):
    length = addr[1]
    prefix = addr[2:] + b'\x00' * (18 - len(addr))
    ip = IPAddress(int.from_bytes(prefix, 'big'), 6)
    return str(IPNetwork('%s/%d' % (ip, length)))


def decode_ipv6_address(addr):
    addr = addr + b'\x00' * (16 - len(addr))
    return str(IPAddress(int.from_bytes(addr, 'big'), 6))


def decode_integer(num, fmt='!I'):
    return (struct.unpack(fmt, num))[0]


def decode_date(num):
    return (struct.unpack('!I', num))[0]


def encode_attr(datatype, value):
    if datatype == 'string':
        return encode_string(value)
    elif datatype == 'octets':
        return encode_octets(value)
    elif datatype == 'integer':
        return encode_integer(value)
    elif datatype == 'ipaddr':
        return encode_address(value)
    elif datatype == 'ipv6prefix':
        return encode_ipv6_prefix(value)
    elif datatype == 'ipv6addr':
        return encode_ipv6_address(value)
    elif datatype == 'signed':
        return encode_integer(value, '!i')
    elif datatype == 'short':
        return encode_integer(value, '!H')
    elif datatype == 'byte':
        return encode_integer(value, '!B')
    elif datatype == 'date':
        return encode_date(value)
    else:
        raise ValueError('Unknown attribute type %s' % datatype)


def decode_attr(datatype, value):
    if datatype == 'string':
        return decode_string(value)
    elif datatype == 'octets':
        return decode_octets(value)
    elif datatype == 'integer':
        return decode_integer(value)
    elif datatype == 'ipaddr':
        return decode_address(value)
    elif datatype == 'ipv6prefix':
        return decode_ipv6_prefix(value)
    elif datatype == 'ipv6addr':
        return decode_ipv6_address(value)
    elif datatype == 'signed':
        return decode_integer(value, '!i')
    elif datatype == 'short':
        return decode_integer(value, '!H')
    elif datatype == 'byte':
        return decode_integer(value, '!B')
    elif datatype == 'date':
        return decode_date(value)
    else:
        raise ValueError('Unknown attribute type %s' % datatype)
