# packet.py
#
# A RADIUS packet as defined in RFC 2865 and RFC 2866

from collections import OrderedDict
import hashlib
import hmac
import itertools
import random
import struct
from radclient import dictionary

# Packet codes
AccessRequest = 1
AccessAccept = 2
AccessReject = 3
AccountingRequest = 4
AccountingResponse = 5
AccessChallenge = 11
StatusServer = 12
StatusClient = 13
DisconnectRequest = 40
DisconnectACK = 41
DisconnectNAK = 42
CoARequest = 43
CoAACK = 44
CoANAK = 45

CODE_NAMES = {
    AccessRequest: 'Access-Request',
    AccessAccept: 'Access-Accept',
    AccessReject: 'Access-Reject',
    AccountingRequest: 'Accounting-Request',
    AccountingResponse: 'Accounting-Response',
    AccessChallenge: 'Access-Challenge',
    StatusServer: 'Status-Server',
    StatusClient: 'Status-Client',
    DisconnectRequest: 'Disconnect-Request',
    DisconnectACK: 'Disconnect-ACK',
    DisconnectNAK: 'Disconnect-NAK',
    CoARequest: 'CoA-Request',
    CoAACK: 'CoA-ACK',
    CoANAK: 'CoA-NAK',
}

# Reply codes a server may answer a request with
RESPONSE_CODES = {
    AccessRequest: (AccessAccept, AccessReject, AccessChallenge),
    AccountingRequest: (AccountingResponse,),
    StatusServer: (AccessAccept, AccountingResponse),
    DisconnectRequest: (DisconnectACK, DisconnectNAK),
    CoARequest: (CoAACK, CoANAK),
}

ALL_RESPONSE_CODES = frozenset(itertools.chain(*RESPONSE_CODES.values()))

# Maximum size of a RADIUS packet, RFC 2865 section 3
MaxPacketSize = 4096

# Use cryptographic-safe random generator as provided by the OS.
random_generator = random.SystemRandom()

_identifiers = itertools.count(random_generator.randrange(0, 256))


class ProtocolError(Exception):
    """Malformed or unexpected RADIUS packet."""


class IdentifierMismatchError(ProtocolError):
    """A reply does not carry the identifier of the request it is
    matched against."""


class AuthenticatorMismatchError(ProtocolError):
    """The Response Authenticator of a reply is not valid for the
    request and shared secret. The reply is forged or corrupted."""


def _check_secret(secret):
    if not isinstance(secret, bytes):
        raise TypeError('secret must be a binary string')


class Packet(OrderedDict):
    """Packet acts like a standard python map to provide simple access
    to the RADIUS attributes. Since RADIUS allows for repeated
    attributes the value will always be a sequence. The ordering is
    preserved when encoding and decoding packets.

    There are two ways to use the map interface: if attribute
    names are used values are en-/decoded using the dictionary. If
    the attribute type number is used you work with the raw data.

    A plain Packet is encoded with a self-authenticating Request
    Authenticator, as used by accounting, CoA and Disconnect
    requests. Normally you will use one of the :obj:`AuthPacket` or
    :obj:`AcctPacket` classes.
    """

    def __init__(self, code=0, id=None, authenticator=None, dict=None,
                 **attributes):
        """Constructor

        :param code:   packet type code
        :type code:    integer (8bits)
        :param id:     packet identification number
        :type id:      integer (8 bits)
        :param authenticator: request or response authenticator
        :type authenticator:  binary string
        :param dict:   RADIUS dictionary
        :type dict:    radclient.dictionary.Dictionary class
        :param packet: raw packet to decode
        :type packet:  binary string
        """
        OrderedDict.__init__(self)
        self.code = code
        self.id = id
        if authenticator is not None and \
                not isinstance(authenticator, bytes):
            raise TypeError('authenticator must be a binary string')
        self.authenticator = authenticator
        self.raw_packet = None
        if dict is None:
            dict = dictionary.Dictionary()
        self.dict = dict

        if 'packet' in attributes:
            self.decode_packet(attributes.pop('packet'))
        elif self.id is None:
            self.id = self.create_id()

        for (key, value) in attributes.items():
            self.add_attribute(key.replace('_', '-'), value)

    def create_reply(self, code=None, **attributes):
        """Create a new packet as a reply to this one. This method
        makes sure the identifier and authenticator are copied over
        to the new instance.
        """
        if code is None:
            code = self.code
        return Packet(code, self.id, self.authenticator, dict=self.dict,
                      **attributes)

    def _encode_key(self, key):
        if isinstance(key, int):
            return key
        return self.dict[key].code

    def _decode_key(self, key):
        """Turn a key into a string if possible"""
        if self.dict.attrindex.has_backward(key):
            return self.dict.attrindex.get_backward(key)
        return key

    def _encode_values(self, key, values):
        if isinstance(values, tuple):
            values = list(values)
        elif not isinstance(values, list):
            values = [values]
        if isinstance(key, int):
            return (key, values)
        attr = self.dict[key]
        return (attr.code, [attr.encode_value(v) for v in values])

    def add_attribute(self, key, value):
        """Add an attribute to the packet. Existing values for the
        same attribute are kept.

        :param key:   attribute name or type number
        :type key:    string or integer
        :param value: value, or a list of values
        :type value:  depends on type of attribute
        """
        (key, value) = self._encode_values(key, value)
        self.setdefault(key, []).extend(value)

    def get(self, key, failobj=None):
        try:
            return self[key]
        except KeyError:
            return failobj

    def __getitem__(self, key):
        if isinstance(key, int):
            return OrderedDict.__getitem__(self, key)

        attr = self.dict[key]
        values = OrderedDict.__getitem__(self, attr.code)
        return [attr.decode_value(v) for v in values]

    def __contains__(self, key):
        try:
            return OrderedDict.__contains__(self, self._encode_key(key))
        except KeyError:
            return False

    has_key = __contains__

    def __delitem__(self, key):
        OrderedDict.__delitem__(self, self._encode_key(key))

    def __setitem__(self, key, item):
        (key, item) = self._encode_values(key, item)
        OrderedDict.__setitem__(self, key, item)

    def keys(self):
        return [self._decode_key(key) for key in OrderedDict.keys(self)]

    def __str__(self):
        attrs = []
        for key in OrderedDict.keys(self):
            name = self._decode_key(key)
            try:
                values = self[name]
            except (ValueError, IndexError, struct.error):
                values = OrderedDict.__getitem__(self, key)
            attrs.append('%s=%r' % (name, values))
        return '%s id=%d [%s]' % (CODE_NAMES.get(self.code, self.code),
                                  self.id, ', '.join(attrs))

    @staticmethod
    def create_authenticator():
        """Create a packet authenticator. All RADIUS packets contain a sixteen
        byte authenticator which is used to authenticate replies from the
        RADIUS server and in the password hiding algorithm. This function
        returns a suitable random string that can be used as an authenticator.

        :return: valid packet authenticator
        :rtype: binary string
        """
        return bytes(random_generator.randrange(0, 256) for _ in range(16))

    @staticmethod
    def create_id():
        """Create a packet ID. All RADIUS requests have a ID which is used to
        identify a request. This is used to detect retries and replay attacks.
        Identifiers are handed out sequentially from a random start, so
        requests sent close together never share one.

        :return: ID number
        :rtype:  integer (8 bits)
        """
        return next(_identifiers) % 256

    def _pkt_encode_attributes(self):
        result = []
        for (code, datalst) in OrderedDict.items(self):
            for data in datalst:
                if len(data) > 253:
                    raise ProtocolError(
                        'Attribute %d is too long (%d)' % (code, len(data)))
                result.append(struct.pack('!BB', code, len(data) + 2) + data)
        return b''.join(result)

    def _pkt_header(self, attr):
        length = 20 + len(attr)
        if length > MaxPacketSize:
            raise ProtocolError('Packet length is too long (%d)' % length)
        return struct.pack('!BBH', self.code, self.id, length)

    def request_packet(self, secret):
        """Create a ready-to-transmit request packet with a self
        authenticating Request Authenticator: the MD5 hash of the
        header, sixteen zero octets, the attributes and the shared
        secret. This is how accounting requests are secured, see
        RFC 2866 section 3.

        :param secret: secret shared with the RADIUS server
        :type secret:  binary string
        :return:       raw packet
        :rtype:        binary string
        """
        _check_secret(secret)
        attr = self._pkt_encode_attributes()
        header = self._pkt_header(attr)
        self.authenticator = hashlib.md5(header + 16 * b'\x00' + attr +
                                         secret).digest()
        return header + self.authenticator + attr

    def reply_packet(self, secret):
        """Create a ready-to-transmit reply packet. The Response
        Authenticator covers the authenticator of the request being
        replied to, which this packet must carry.

        :param secret: secret shared with the RADIUS client
        :type secret:  binary string
        :return:       raw packet
        :rtype:        binary string
        """
        assert self.authenticator
        _check_secret(secret)
        attr = self._pkt_encode_attributes()
        header = self._pkt_header(attr)
        authenticator = hashlib.md5(header + self.authenticator + attr +
                                    secret).digest()
        return header + authenticator + attr

    def verify_reply(self, rawreply, secret):
        """Check the Response Authenticator of a raw reply to this
        packet.

        :return: False if verification failed else True
        :rtype:  boolean
        """
        _check_secret(secret)
        if len(rawreply) < 20 or self.authenticator is None:
            return False
        if rawreply[1] != self.id:
            return False
        digest = hashlib.md5(rawreply[0:4] + self.authenticator +
                             rawreply[20:] + secret).digest()
        return hmac.compare_digest(digest, rawreply[4:20])

    def verify_request(self, secret):
        """Verify the self authenticating Request Authenticator of a
        decoded accounting (or CoA/Disconnect) request.

        :return: False if verification failed else True
        :rtype:  boolean
        """
        assert self.raw_packet
        _check_secret(secret)
        digest = hashlib.md5(self.raw_packet[0:4] + 16 * b'\x00' +
                             self.raw_packet[20:] + secret).digest()
        return hmac.compare_digest(digest, self.authenticator)

    def decode_packet(self, packet):
        """Initialize the object from raw packet data. Unknown attribute
        types are kept as raw values.

        :param packet: raw packet
        :type packet:  binary string
        :raise ProtocolError: the packet is malformed
        """
        try:
            (self.code, self.id, length, self.authenticator) = \
                struct.unpack('!BBH16s', packet[0:20])
        except struct.error:
            raise ProtocolError('Packet header is corrupt')
        if len(packet) != length:
            raise ProtocolError('Packet has invalid length')
        if length > MaxPacketSize:
            raise ProtocolError('Packet length is too long (%d)' % length)

        self.clear()
        self.raw_packet = packet

        loc = 20
        while loc < length:
            try:
                (key, attrlen) = struct.unpack('!BB', packet[loc:loc + 2])
            except struct.error:
                raise ProtocolError('Attribute header is corrupt')
            if attrlen < 2:
                raise ProtocolError(
                    'Attribute length is too small (%d)' % attrlen)
            if loc + attrlen > length:
                raise ProtocolError(
                    'Attribute length exceeds packet (%d)' % attrlen)
            self.setdefault(key, []).append(packet[loc + 2:loc + attrlen])
            loc += attrlen


class AuthPacket(Packet):
    """RADIUS authentication packets. An Access-Request gets a random
    Request Authenticator every time it is encoded. A plaintext
    password given to the constructor is hidden with that
    authenticator, as User-Password for PAP or as CHAP-Password for
    CHAP.
    """

    def __init__(self, code=AccessRequest, id=None, authenticator=None,
                 auth_type='pap', password=None, **attributes):
        """Constructor

        :param code:      packet type code
        :type code:       integer (8bits)
        :param id:        packet identification number
        :type id:         integer (8 bits)
        :param auth_type: 'pap' or 'chap'
        :type auth_type:  string
        :param password:  plaintext password
        :type password:   string
        :param dict:      RADIUS dictionary
        :type dict:       radclient.dictionary.Dictionary class
        :param packet:    raw packet to decode
        :type packet:     binary string
        """
        if auth_type not in ('pap', 'chap'):
            raise ValueError('Unknown authentication type %s' % auth_type)
        Packet.__init__(self, code, id, authenticator, **attributes)
        self.auth_type = auth_type
        self.password = password

    def create_reply(self, code=AccessAccept, **attributes):
        return Packet.create_reply(self, code, **attributes)

    def request_packet(self, secret):
        """Create a ready-to-transmit authentication request packet.
        If the packet holds a plaintext password a fresh Request
        Authenticator is generated on every call and the password is
        hidden with it. Otherwise an authenticator that is already set,
        for example by :meth:`pw_crypt`, is kept since attributes may
        have been hidden with it.

        :param secret: secret shared with the RADIUS server
        :type secret:  binary string
        :return:       raw packet
        :rtype:        binary string
        """
        _check_secret(secret)
        if self.password is not None or self.authenticator is None:
            self.authenticator = self.create_authenticator()

        if self.password is not None:
            if self.auth_type == 'chap':
                if 2 in self:
                    del self[2]
                self[3] = [self.chap_password(self.password)]
            else:
                if 3 in self:
                    del self[3]
                self[2] = [self.pw_crypt(self.password, secret)]

        attr = self._pkt_encode_attributes()
        header = self._pkt_header(attr)
        return header + self.authenticator + attr

    def pw_crypt(self, password, secret):
        """Obfuscate password.
        RADIUS hides passwords in packets by using an algorithm
        based on the MD5 hash of the packet authenticator and RADIUS
        secret, see RFC 2865 section 5.2. If no authenticator has been
        set before calling pw_crypt one is created automatically.

        :param password: plaintext password
        :type password:  unicode string
        :param secret:   shared secret
        :type secret:    binary string
        :return:         obfuscated version of the password
        :rtype:          binary string
        """
        if self.authenticator is None:
            self.authenticator = self.create_authenticator()

        if isinstance(password, str):
            password = password.encode('utf-8')
        if len(password) > 128:
            raise ValueError('Password can be at most 128 octets long')

        buf = password
        if len(password) % 16 != 0 or not password:
            buf += b'\x00' * (16 - (len(password) % 16))

        result = b''
        last = self.authenticator
        while buf:
            hash = hashlib.md5(secret + last).digest()
            result += bytes(h ^ b for (h, b) in zip(hash, buf[:16]))
            last = result[-16:]
            buf = buf[16:]

        return result

    def pw_decrypt(self, password, secret):
        """Reverse the password obfuscation of :meth:`pw_crypt`.

        :param password: obfuscated form of password
        :type password:  binary string
        :param secret:   shared secret
        :type secret:    binary string
        :return:         plaintext password
        :rtype:          unicode string
        """
        buf = password
        pw = b''

        last = self.authenticator
        while buf:
            hash = hashlib.md5(secret + last).digest()
            pw += bytes(h ^ b for (h, b) in zip(hash, buf[:16]))
            (last, buf) = (buf[:16], buf[16:])

        return pw.rstrip(b'\x00').decode('utf-8')

    def chap_password(self, password, chap_id=None):
        """Build the CHAP-Password value for a plaintext password. The
        Request Authenticator serves as CHAP challenge unless the
        packet carries a CHAP-Challenge attribute.

        :return: CHAP identifier followed by the MD5 response
        :rtype:  binary string
        """
        if isinstance(password, str):
            password = password.encode('utf-8')
        if chap_id is None:
            chap_id = random_generator.randrange(0, 256)
        chap_id = struct.pack('B', chap_id)
        return chap_id + hashlib.md5(chap_id + password +
                                     self._chap_challenge()).digest()

    def _chap_challenge(self):
        if 60 in self:
            return self[60][0]
        return self.authenticator

    def verify_chap_password(self, password):
        """Verify the CHAP-Password of a decoded request.

        :param password: plaintext password
        :type password:  str
        :return:         is verify ok
        :rtype:          bool
        """
        if 3 not in self:
            return False
        chap_password = self[3][0]
        if len(chap_password) != 17:
            return False
        expected = self.chap_password(password, chap_password[0])
        return hmac.compare_digest(expected, chap_password)


class AcctPacket(Packet):
    """RADIUS accounting packets. This class is a specialization
    of the generic :obj:`Packet` class for accounting packets.
    """

    def __init__(self, code=AccountingRequest, id=None, authenticator=None,
                 **attributes):
        Packet.__init__(self, code, id, authenticator, **attributes)

    def create_reply(self, code=AccountingResponse, **attributes):
        return Packet.create_reply(self, code, **attributes)


def encode_request(packet, secret):
    """Encode a request packet for transmission, computing its Request
    Authenticator.

    :param packet: request to encode
    :type packet:  radclient.packet.Packet
    :param secret: shared secret
    :type secret:  binary string
    :return:       raw packet
    :rtype:        binary string
    """
    return packet.request_packet(secret)


def decode_response(raw, secret, request):
    """Decode and verify a raw reply to a request.

    :param raw:     received datagram
    :type raw:      binary string
    :param secret:  shared secret
    :type secret:   binary string
    :param request: the request as it was sent
    :type request:  radclient.packet.Packet
    :return:        decoded reply
    :rtype:         radclient.packet.Packet
    :raise IdentifierMismatchError: reply belongs to another request
    :raise AuthenticatorMismatchError: reply failed verification
    :raise ProtocolError: reply is malformed
    """
    if len(raw) < 20:
        raise ProtocolError('Packet header is corrupt')
    (code, id, length) = struct.unpack('!BBH', raw[0:4])
    if length != len(raw):
        raise ProtocolError('Packet has invalid length')
    if id != request.id:
        raise IdentifierMismatchError(
            'Reply id %d does not match request id %d' % (id, request.id))
    if code not in RESPONSE_CODES.get(request.code, ALL_RESPONSE_CODES):
        raise ProtocolError('Unexpected reply code %d to %s' %
                            (code, CODE_NAMES.get(request.code, request.code)))
    if not request.verify_reply(raw, secret):
        raise AuthenticatorMismatchError(
            'Reply authenticator verification failed')
    return Packet(dict=request.dict, packet=raw)
