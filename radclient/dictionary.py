# dictionary.py
#
# Attribute definitions for the standard RADIUS attributes
"""
RADIUS identifies attributes by a one byte type number. The Dictionary
class maps attribute names to those numbers and knows the datatype of
each attribute, so packets can be filled and inspected using names
and native python values.

The standard attributes from RFC 2865 and RFC 2866 are always
available. Additional attributes can be registered with
:meth:`Dictionary.add_attribute`::

  d = Dictionary()
  d.add_attribute('My-Attribute', 200, 'string')

The datatypes currently supported are:

+---------------+----------------------------------------------+
| type          | description                                  |
+===============+==============================================+
| string        | UTF-8 string                                 |
+---------------+----------------------------------------------+
| octets        | arbitrary binary data                        |
+---------------+----------------------------------------------+
| ipaddr        | IPv4 address                                 |
+---------------+----------------------------------------------+
| ipv6addr      | 16 octets in network byte order              |
+---------------+----------------------------------------------+
| ipv6prefix    | 18 octets in network byte order              |
+---------------+----------------------------------------------+
| integer       | 32 bits unsigned number                      |
+---------------+----------------------------------------------+
| signed        | 32 bits signed number                        |
+---------------+----------------------------------------------+
| short         | 16 bits unsigned number                      |
+---------------+----------------------------------------------+
| byte          | 8 bits unsigned number                       |
+---------------+----------------------------------------------+
| date          | 32 bits UNIX timestamp                       |
+---------------+----------------------------------------------+
"""
import struct
from radclient import bidict
from radclient import tools

__docformat__ = 'epytext en'

DATATYPES = frozenset(['string', 'octets', 'ipaddr', 'ipv6addr', 'ipv6prefix',
                       'integer', 'signed', 'short', 'byte', 'date'])

# name, code, datatype, encrypt flag, named values
STANDARD_ATTRIBUTES = [
    ('User-Name', 1, 'string', 0, None),
    ('User-Password', 2, 'octets', 1, None),
    ('CHAP-Password', 3, 'octets', 0, None),
    ('NAS-IP-Address', 4, 'ipaddr', 0, None),
    ('NAS-Port', 5, 'integer', 0, None),
    ('Service-Type', 6, 'integer', 0, {
        'Login-User': 1,
        'Framed-User': 2,
        'Callback-Login-User': 3,
        'Callback-Framed-User': 4,
        'Outbound-User': 5,
        'Administrative-User': 6,
        'NAS-Prompt-User': 7,
        'Authenticate-Only': 8,
        'Callback-NAS-Prompt': 9,
        'Call-Check': 10,
        'Callback-Administrative': 11,
    }),
    ('Framed-Protocol', 7, 'integer', 0, {
        'PPP': 1,
        'SLIP': 2,
        'ARAP': 3,
        'Gandalf-SLML': 4,
        'Xylogics-IPX-SLIP': 5,
        'X.75-Synchronous': 6,
    }),
    ('Framed-IP-Address', 8, 'ipaddr', 0, None),
    ('Framed-IP-Netmask', 9, 'ipaddr', 0, None),
    ('Framed-Routing', 10, 'integer', 0, None),
    ('Filter-Id', 11, 'string', 0, None),
    ('Framed-MTU', 12, 'integer', 0, None),
    ('Framed-Compression', 13, 'integer', 0, None),
    ('Login-IP-Host', 14, 'ipaddr', 0, None),
    ('Login-Service', 15, 'integer', 0, None),
    ('Login-TCP-Port', 16, 'integer', 0, None),
    ('Reply-Message', 18, 'string', 0, None),
    ('Callback-Number', 19, 'string', 0, None),
    ('Callback-Id', 20, 'string', 0, None),
    ('Framed-Route', 22, 'string', 0, None),
    ('Framed-IPX-Network', 23, 'ipaddr', 0, None),
    ('State', 24, 'octets', 0, None),
    ('Class', 25, 'octets', 0, None),
    ('Vendor-Specific', 26, 'octets', 0, None),
    ('Session-Timeout', 27, 'integer', 0, None),
    ('Idle-Timeout', 28, 'integer', 0, None),
    ('Termination-Action', 29, 'integer', 0, {
        'Default': 0,
        'RADIUS-Request': 1,
    }),
    ('Called-Station-Id', 30, 'string', 0, None),
    ('Calling-Station-Id', 31, 'string', 0, None),
    ('NAS-Identifier', 32, 'string', 0, None),
    ('Proxy-State', 33, 'octets', 0, None),
    ('Login-LAT-Service', 34, 'string', 0, None),
    ('Login-LAT-Node', 35, 'string', 0, None),
    ('Login-LAT-Group', 36, 'octets', 0, None),
    ('Framed-AppleTalk-Link', 37, 'integer', 0, None),
    ('Framed-AppleTalk-Network', 38, 'integer', 0, None),
    ('Framed-AppleTalk-Zone', 39, 'string', 0, None),
    ('Acct-Status-Type', 40, 'integer', 0, {
        'Start': 1,
        'Stop': 2,
        'Interim-Update': 3,
        'Accounting-On': 7,
        'Accounting-Off': 8,
    }),
    ('Acct-Delay-Time', 41, 'integer', 0, None),
    ('Acct-Input-Octets', 42, 'integer', 0, None),
    ('Acct-Output-Octets', 43, 'integer', 0, None),
    ('Acct-Session-Id', 44, 'string', 0, None),
    ('Acct-Authentic', 45, 'integer', 0, {
        'RADIUS': 1,
        'Local': 2,
        'Remote': 3,
    }),
    ('Acct-Session-Time', 46, 'integer', 0, None),
    ('Acct-Input-Packets', 47, 'integer', 0, None),
    ('Acct-Output-Packets', 48, 'integer', 0, None),
    ('Acct-Terminate-Cause', 49, 'integer', 0, {
        'User-Request': 1,
        'Lost-Carrier': 2,
        'Lost-Service': 3,
        'Idle-Timeout': 4,
        'Session-Timeout': 5,
        'Admin-Reset': 6,
        'Admin-Reboot': 7,
        'Port-Error': 8,
        'NAS-Error': 9,
        'NAS-Request': 10,
        'NAS-Reboot': 11,
        'Port-Unneeded': 12,
        'Port-Preempted': 13,
        'Port-Suspended': 14,
        'Service-Unavailable': 15,
        'Callback': 16,
        'User-Error': 17,
        'Host-Request': 18,
    }),
    ('Acct-Multi-Session-Id', 50, 'string', 0, None),
    ('Acct-Link-Count', 51, 'integer', 0, None),
    ('Acct-Input-Gigawords', 52, 'integer', 0, None),
    ('Acct-Output-Gigawords', 53, 'integer', 0, None),
    ('Event-Timestamp', 55, 'date', 0, None),
    ('CHAP-Challenge', 60, 'octets', 0, None),
    ('NAS-Port-Type', 61, 'integer', 0, {
        'Async': 0,
        'Sync': 1,
        'ISDN': 2,
        'ISDN-V120': 3,
        'ISDN-V110': 4,
        'Virtual': 5,
        'Ethernet': 15,
        'Wireless-802.11': 19,
    }),
    ('Port-Limit', 62, 'integer', 0, None),
    ('Login-LAT-Port', 63, 'string', 0, None),
    ('EAP-Message', 79, 'octets', 0, None),
    ('Message-Authenticator', 80, 'octets', 0, None),
    ('NAS-Port-Id', 87, 'string', 0, None),
    ('NAS-IPv6-Address', 95, 'ipv6addr', 0, None),
    ('Framed-IPv6-Prefix', 97, 'ipv6prefix', 0, None),
]


class Attribute:
    """A single attribute definition.

    :ivar   name: attribute name
    :type   name: string
    :ivar   code: attribute type number
    :type   code: integer (8 bits)
    :ivar   type: datatype name
    :type   type: string
    :ivar encrypt: 1 for attributes hidden with the password algorithm
    :type encrypt: integer
    :ivar values: named values
    :type values: bidict mapping value name to integer
    """

    def __init__(self, name, code, datatype, encrypt=0, values=None):
        if datatype not in DATATYPES:
            raise ValueError('Invalid data type %s' % datatype)
        if not 1 <= code <= 255:
            raise ValueError('Invalid attribute code %d' % code)
        self.name = name
        self.code = code
        self.type = datatype
        self.encrypt = encrypt
        self.values = bidict.BiDict()
        if values:
            for (key, value) in values.items():
                self.values.add(key, value)

    def encode_value(self, value):
        if self.values.has_forward(value):
            value = self.values.get_forward(value)
        return tools.encode_attr(self.type, value)

    def decode_value(self, raw):
        value = tools.decode_attr(self.type, raw)
        if self.values.has_backward(value):
            return self.values.get_backward(value)
        return value


class Dictionary:
    """RADIUS attribute codec.

    :ivar attributes: attribute definitions by name
    :type attributes: dictionary
    :ivar attrindex:  bidict mapping attribute names to type numbers
    :type attrindex:  bidict
    """

    def __init__(self, attributes=STANDARD_ATTRIBUTES):
        self.attributes = {}
        self.attrindex = bidict.BiDict()
        for (name, code, datatype, encrypt, values) in attributes:
            self.add_attribute(name, code, datatype, values, encrypt)

    def add_attribute(self, name, code, datatype, values=None, encrypt=0):
        """Register an attribute. An existing definition with the same
        name or type number is replaced.

        :return: the new attribute
        :rtype:  Attribute
        """
        attr = Attribute(name, code, datatype, encrypt, values)
        if self.attrindex.has_backward(code):
            del self.attributes[self.attrindex.get_backward(code)]
        self.attributes.pop(name, None)
        self.attributes[name] = attr
        self.attrindex.add(name, code)
        return attr

    def __len__(self):
        return len(self.attributes)

    def __contains__(self, key):
        if isinstance(key, int):
            return self.attrindex.has_backward(key)
        return key in self.attributes

    def __getitem__(self, key):
        if isinstance(key, int):
            key = self.attrindex.get_backward(key)
        return self.attributes[key]

    def get(self, key, default=None):
        try:
            return self[key]
        except KeyError:
            return default

    def encode(self, key, value):
        """Encode a complete attribute.

        :param   key: attribute name or type number. Values of unknown
                      type numbers must already be binary strings.
        :type    key: string or integer
        :return:      type, length and value octets
        :rtype:       binary string
        """
        attr = self.get(key)
        if attr is not None:
            raw = attr.encode_value(value)
            key = attr.code
        elif isinstance(key, int):
            raw = tools.encode_octets(value)
        else:
            raise KeyError('Unknown attribute %s' % key)
        return struct.pack('!BB', key, len(raw) + 2) + raw

    def decode(self, data):
        """Decode a single attribute.

        :param data: type, length and value octets
        :type  data: binary string
        :return:     type number and native value. The value of an
                     attribute that is not defined is returned as is.
        :rtype:      tuple
        """
        if len(data) < 2:
            raise ValueError('Attribute header is corrupt')
        (key, length) = struct.unpack('!BB', data[0:2])
        if length < 2 or length > len(data):
            raise ValueError('Attribute has invalid length (%d)' % length)
        raw = data[2:length]
        attr = self.get(key)
        if attr is None:
            return (key, raw)
        return (key, attr.decode_value(raw))
