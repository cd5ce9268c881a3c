import unittest
from radclient.dictionary import Dictionary
from radclient.host import ConfigurationError
from radclient.host import Endpoint
from radclient.host import Host
from radclient.host import check_port
from radclient.host import check_secret
from radclient.packet import Packet
from radclient.packet import AuthPacket
from radclient.packet import AcctPacket


class ValidationTests(unittest.TestCase):
    def testPortRange(self):
        self.assertEqual(check_port(1), 1)
        self.assertEqual(check_port(65535), 65535)
        self.assertRaises(ConfigurationError, check_port, 0)
        self.assertRaises(ConfigurationError, check_port, 65536)
        self.assertRaises(ConfigurationError, check_port, -1)

    def testPortType(self):
        self.assertRaises(ConfigurationError, check_port, '1812')
        self.assertRaises(ConfigurationError, check_port, True)
        self.assertRaises(ConfigurationError, check_port, None)

    def testSecret(self):
        self.assertEqual(check_secret('testing123'), b'testing123')
        self.assertEqual(check_secret(b'testing123'), b'testing123')
        self.assertRaises(ConfigurationError, check_secret, '')
        self.assertRaises(ConfigurationError, check_secret, b'')
        self.assertRaises(ConfigurationError, check_secret, None)

    def testConfigurationErrorIsValueError(self):
        self.assertTrue(issubclass(ConfigurationError, ValueError))


class EndpointTests(unittest.TestCase):
    def testSimpleConstruction(self):
        endpoint = Endpoint('radius.example.com', 'secret')
        self.assertEqual(endpoint.address, 'radius.example.com')
        self.assertEqual(endpoint.secret, b'secret')
        self.assertEqual(endpoint.authport, 1812)
        self.assertEqual(endpoint.acctport, 1813)

    def testParameterOrder(self):
        endpoint = Endpoint('127.0.0.1', b'secret', 123, 456)
        self.assertEqual(endpoint.authport, 123)
        self.assertEqual(endpoint.acctport, 456)

    def testInvalidSettings(self):
        self.assertRaises(ConfigurationError, Endpoint, '', 'secret')
        self.assertRaises(ConfigurationError, Endpoint, None, 'secret')
        self.assertRaises(ConfigurationError, Endpoint, '127.0.0.1', '')
        self.assertRaises(ConfigurationError, Endpoint, '127.0.0.1',
                          'secret', 0)
        self.assertRaises(ConfigurationError, Endpoint, '127.0.0.1',
                          'secret', 1812, 70000)

    def testRepr(self):
        endpoint = Endpoint('127.0.0.1', 'secret')
        self.assertEqual(repr(endpoint),
                         "Endpoint('127.0.0.1', authport=1812, acctport=1813)")
        self.assertFalse('secret' in repr(endpoint))


class ConstructionTests(unittest.TestCase):
    def testSimpleConstruction(self):
        host = Host()
        self.assertEqual(host.authport, 1812)
        self.assertEqual(host.acctport, 1813)
        self.assertTrue(isinstance(host.dict, Dictionary))

    def testParameterOrder(self):
        marker = Dictionary()
        host = Host(123, 456, marker)
        self.assertEqual(host.authport, 123)
        self.assertEqual(host.acctport, 456)
        self.assertTrue(host.dict is marker)

    def testNamedParameters(self):
        marker = Dictionary()
        host = Host(authport=123, acctport=456, dict=marker)
        self.assertEqual(host.authport, 123)
        self.assertEqual(host.acctport, 456)
        self.assertTrue(host.dict is marker)

    def testInvalidPorts(self):
        self.assertRaises(ConfigurationError, Host, 0)
        self.assertRaises(ConfigurationError, Host, 1812, 65536)

    def testFailedUpdateKeepsPort(self):
        host = Host()
        self.assertRaises(ConfigurationError, setattr, host, 'authport', 0)
        self.assertEqual(host.authport, 1812)


class PacketCreationTests(unittest.TestCase):
    def setUp(self):
        self.host = Host()

    def testCreatePacket(self):
        packet = self.host.create_packet(id=15)
        self.assertTrue(isinstance(packet, Packet))
        self.assertTrue(packet.dict is self.host.dict)
        self.assertEqual(packet.id, 15)

    def testCreateAuthPacket(self):
        packet = self.host.create_auth_packet(id=15)
        self.assertTrue(isinstance(packet, AuthPacket))
        self.assertTrue(packet.dict is self.host.dict)
        self.assertEqual(packet.id, 15)

    def testCreateAcctPacket(self):
        packet = self.host.create_acct_packet(id=15)
        self.assertTrue(isinstance(packet, AcctPacket))
        self.assertTrue(packet.dict is self.host.dict)
        self.assertEqual(packet.id, 15)
