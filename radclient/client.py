# client.py
#
# RADIUS client: request/response exchange with retries

__docformat__ = "epytext en"

import logging
import select
import socket
import threading
import time
from radclient import host
from radclient import packet
from radclient.host import ConfigurationError


class CommunicationError(OSError):
    """Raised when the exchange with a RADIUS server failed on the
    transport level for every attempt."""


class Timeout(CommunicationError):
    """Simple exception class which is raised when a timeout occurs
    while waiting for a RADIUS server to respond."""


class Client(host.Host):
    """Basic RADIUS client.
    This class implements a basic RADIUS client. It can send requests
    to a RADIUS server, taking care of timeouts and retries, and
    validate its replies.

    A client opens a single UDP socket which is reused for every
    request until :meth:`close` is called. Exchanges on that socket
    are serialized: a thread calling into a client that is busy waits
    until the running exchange has finished.

    :ivar retries: number of attempts to send a RADIUS request
    :type retries: integer
    :ivar timeout: number of seconds to wait for an answer per attempt
    :type timeout: number
    """

    def __init__(self, server, secret, authport=1812, acctport=1813,
                 dict=None, retries=3, timeout=3, logger_name='radclient'):
        """Constructor. All settings are validated immediately.

        :param      server: hostname or IP address of RADIUS server
        :type       server: string
        :param      secret: RADIUS secret
        :type       secret: string or binary string
        :param    authport: port to use for authentication packets
        :type     authport: integer
        :param    acctport: port to use for accounting packets
        :type     acctport: integer
        :param        dict: RADIUS dictionary
        :type         dict: radclient.dictionary.Dictionary
        :param     retries: number of attempts per request
        :type      retries: integer
        :param     timeout: seconds to wait for a reply per attempt
        :type      timeout: number
        :param logger_name: name of the logger to report to
        :type  logger_name: string
        :raise ConfigurationError: a setting is invalid
        """
        self._socket = None
        self._poll = None
        self._lock = threading.Lock()
        host.Host.__init__(self, authport, acctport, dict)

        self.server = server
        self.secret = secret
        self.retries = retries
        self.timeout = timeout
        self.logger = logging.getLogger(logger_name)

    @classmethod
    def from_endpoint(cls, endpoint, **kwargs):
        """Create a client for a :obj:`radclient.host.Endpoint`."""
        return cls(endpoint.address, endpoint.secret, endpoint.authport,
                   endpoint.acctport, **kwargs)

    @property
    def server(self):
        return self._server

    @server.setter
    def server(self, value):
        self._server = host.check_hostname(value)

    @property
    def secret(self):
        return self._secret

    @secret.setter
    def secret(self, value):
        self._secret = host.check_secret(value)

    @property
    def retries(self):
        return self._retries

    @retries.setter
    def retries(self, value):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError('retry count must be an integer')
        if value < 1:
            raise ConfigurationError('retry count must be positive')
        self._retries = value

    @property
    def timeout(self):
        return self._timeout

    @timeout.setter
    def timeout(self, value):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError('socket timeout must be a number')
        if not value > 0:
            raise ConfigurationError('socket timeout must be positive')
        self._timeout = value
        if self._socket is not None:
            self._socket.settimeout(value)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc_info):
        self.close()

    def bind(self, addr):
        """Bind socket to an address.
        Binding the socket used for communicating to an address can be
        usefull when working on a machine with multiple addresses.

        :param addr: network address (hostname or IP) and port to bind to
        :type  addr: host,port tuple
        """
        self.close()
        self.open()
        self._socket.bind(addr)

    def open(self):
        """Create the UDP socket if it does not exist yet. It is bound to
        an arbitrary free local port when the first packet is sent.

        :return: the socket used to talk to the server
        :rtype:  socket.socket
        """
        if self._socket is None:
            try:
                family = socket.getaddrinfo(self.server, None)[0][0]
            except socket.gaierror:
                family = socket.AF_INET
            sock = socket.socket(family, socket.SOCK_DGRAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.settimeout(self.timeout)
            self._poll = select.poll()
            self._poll.register(sock, select.POLLIN)
            self._socket = sock
        return self._socket

    def close(self):
        """Close the socket of this client. Closing a client without a
        socket does nothing. An exchange running in another thread is
        woken up and fails with a :obj:`CommunicationError`.
        """
        sock = self._socket
        self._socket = None
        self._poll = None
        if sock is not None:
            # Wakes up a thread blocked in poll. An unconnected UDP socket
            # raises ENOTCONN here but the wakeup still happens.
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()

    def communicate(self, pkt, port):
        """Send a packet to the RADIUS server and wait for its reply.

        The request is encoded once and the same datagram is sent on
        every attempt, so attributes such as Acct-Delay-Time are not
        updated for retransmissions.

        :param pkt:  the packet to send
        :type pkt:   radclient.packet.Packet
        :param port: UDP port to send packet to
        :type port:  integer
        :return:     the reply packet received
        :rtype:      radclient.packet.Packet
        :raise Timeout: RADIUS server does not reply
        :raise CommunicationError: network error on the last attempt
        :raise radclient.packet.ProtocolError: invalid reply
        """
        host.check_port(port)
        with self._lock:
            sock = self.open()
            poll = self._poll
            rawpacket = packet.encode_request(pkt, self.secret)
            address = (self.server, port)

            for attempt in range(1, self.retries + 1):
                try:
                    return self._exchange(sock, poll, rawpacket, pkt, address)
                except CommunicationError as err:
                    if self._socket is not sock:
                        self.logger.error('[%s:%d] socket closed during '
                                          'exchange: %s', self.server, port,
                                          err)
                        raise
                    if attempt < self.retries:
                        self.logger.info('[%s:%d] communication failure, '
                                         'retry %d: %s', self.server, port,
                                         attempt, err)
                        continue
                    if isinstance(err, Timeout):
                        self.logger.error('[%s:%d] communication failure '
                                          '(timeout), no more retries',
                                          self.server, port)
                    else:
                        self.logger.error('[%s:%d] communication failure, '
                                          'no more retries: %s',
                                          self.server, port, err)
                    raise

    def _exchange(self, sock, poll, rawpacket, pkt, address):
        try:
            sock.sendto(rawpacket, address)
        except OSError as err:
            raise CommunicationError('Sending packet failed: %s' % err) \
                from err

        waitto = time.monotonic() + self.timeout
        while True:
            remaining = waitto - time.monotonic()
            if remaining <= 0 or not poll.poll(remaining * 1000):
                raise Timeout('No reply within %s seconds' % self.timeout)

            try:
                rawreply = sock.recv(packet.MaxPacketSize)
            except socket.timeout as err:
                raise Timeout('No reply within %s seconds' % self.timeout) \
                    from err
            except OSError as err:
                raise CommunicationError('Receiving packet failed: %s' % err) \
                    from err
            if not rawreply:
                raise CommunicationError('Socket was shut down')

            try:
                return packet.decode_response(rawreply, self.secret, pkt)
            except packet.IdentifierMismatchError as err:
                self.logger.debug('[%s:%d] Ignore reply: %s',
                                  address[0], address[1], err)

    def authenticate(self, user_name, password, auth_type='pap'):
        """Authenticate a user.

        :param user_name: user name
        :type  user_name: string
        :param  password: plaintext password
        :type   password: string
        :param auth_type: 'pap' or 'chap'
        :type  auth_type: string
        :return: True if the server accepted the user, False otherwise
        :rtype:  boolean
        """
        request = self.create_auth_packet(User_Name=user_name,
                                          password=password,
                                          auth_type=auth_type)
        reply = self.authenticate_packet(request)
        return reply.code == packet.AccessAccept

    def authenticate_packet(self, request):
        """Send an Access-Request packet and receive the reply.

        :param request: request packet
        :type  request: radclient.packet.AuthPacket
        :return:        reply packet
        :rtype:         radclient.packet.Packet
        """
        self.logger.info('send packet: %s', request)
        reply = self.communicate(request, self.authport)
        self.logger.info('received packet: %s', reply)
        return reply

    def account(self, request):
        """Send an Accounting-Request packet and receive the reply.

        :param request: request packet
        :type  request: radclient.packet.AcctPacket
        :return:        reply packet
        :rtype:         radclient.packet.Packet
        """
        self.logger.info('send packet: %s', request)
        reply = self.communicate(request, self.acctport)
        self.logger.info('received packet: %s', reply)
        return reply

    def send_packet(self, pkt):
        """Send a packet to the RADIUS server. Authentication packets
        go to the authentication port, everything else to the
        accounting port.

        :param pkt: the packet to send
        :type pkt:  radclient.packet.Packet
        :return:    the reply packet received
        :rtype:     radclient.packet.Packet
        """
        if isinstance(pkt, packet.AuthPacket):
            return self.authenticate_packet(pkt)
        return self.account(pkt)


def communicate(endpoint, pkt, port=None, **kwargs):
    """Send a single packet to a RADIUS endpoint using a short-lived
    client.

    :param endpoint: RADIUS server
    :type  endpoint: radclient.host.Endpoint
    :param      pkt: the packet to send
    :type       pkt: radclient.packet.Packet
    :param     port: destination port, chosen by packet type if omitted
    :type      port: integer
    :return:         the reply packet received
    :rtype:          radclient.packet.Packet
    """
    with Client.from_endpoint(endpoint, **kwargs) as client:
        if port is None:
            return client.send_packet(pkt)
        return client.communicate(pkt, port)
