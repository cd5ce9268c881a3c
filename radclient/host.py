# host.py
#
# Common host and endpoint configuration

from radclient import dictionary
from radclient import packet


class ConfigurationError(ValueError):
    """An invalid setting was given for a RADIUS host or client. It is
    raised before any network activity happens."""


def check_port(port):
    if isinstance(port, bool) or not isinstance(port, int):
        raise ConfigurationError('bad port number %r' % (port,))
    if port < 1 or port > 65535:
        raise ConfigurationError('bad port number %d' % port)
    return port


def check_hostname(name):
    if not name or not isinstance(name, str):
        raise ConfigurationError('host name must not be empty')
    return name


def check_secret(secret):
    """Validate a shared secret. Text secrets are UTF-8 encoded.

    :return: the secret
    :rtype:  binary string
    """
    if isinstance(secret, str):
        secret = secret.encode('utf-8')
    if not isinstance(secret, bytes):
        raise ConfigurationError('shared secret must be a string')
    if not secret:
        raise ConfigurationError('shared secret must not be empty')
    return secret


class Endpoint:
    """Remote RADIUS server we can talk to.

    :ivar  address: host name or IP address
    :type  address: string
    :ivar   secret: RADIUS secret
    :type   secret: binary string
    :ivar authport: port used for authentication packets
    :type authport: integer
    :ivar acctport: port used for accounting packets
    :type acctport: integer
    """

    def __init__(self, address, secret, authport=1812, acctport=1813):
        self.address = check_hostname(address)
        self.secret = check_secret(secret)
        self.authport = check_port(authport)
        self.acctport = check_port(acctport)

    def __repr__(self):
        return 'Endpoint(%r, authport=%d, acctport=%d)' % (
            self.address, self.authport, self.acctport)


class Host:
    """Generic RADIUS capable host.

    :ivar     dict: RADIUS dictionary
    :type     dict: radclient.dictionary.Dictionary
    :ivar authport: port to send authentication packets to
    :type authport: integer
    :ivar acctport: port to send accounting packets to
    :type acctport: integer
    """

    def __init__(self, authport=1812, acctport=1813, dict=None):
        """Constructor

        :param authport: port to send authentication packets to
        :type  authport: integer
        :param acctport: port to send accounting packets to
        :type  acctport: integer
        :param     dict: RADIUS dictionary
        :type      dict: radclient.dictionary.Dictionary
        """
        self.authport = authport
        self.acctport = acctport
        if dict is None:
            dict = dictionary.Dictionary()
        self.dict = dict

    @property
    def authport(self):
        return self._authport

    @authport.setter
    def authport(self, value):
        self._authport = check_port(value)

    @property
    def acctport(self):
        return self._acctport

    @acctport.setter
    def acctport(self, value):
        self._acctport = check_port(value)

    def create_packet(self, **args):
        """Create a new RADIUS packet.
        This utility function creates a new RADIUS packet which can
        be used to communicate with the RADIUS server this client
        talks to. This is initializing the new packet with the
        dictionary used for the host.

        :return: a new empty packet instance
        :rtype:  radclient.packet.Packet
        """
        return packet.Packet(dict=self.dict, **args)

    def create_auth_packet(self, **args):
        """Create a new authentication RADIUS packet.

        :return: a new empty packet instance
        :rtype:  radclient.packet.AuthPacket
        """
        return packet.AuthPacket(dict=self.dict, **args)

    def create_acct_packet(self, **args):
        """Create a new accounting RADIUS packet.

        :return: a new empty packet instance
        :rtype:  radclient.packet.AcctPacket
        """
        return packet.AcctPacket(dict=self.dict, **args)
