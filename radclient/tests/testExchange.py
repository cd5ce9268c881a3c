import threading
import time
import unittest
from radclient import client
from radclient import packet
from radclient.client import Client
from radclient.client import CommunicationError
from radclient.client import Timeout
from radclient.host import Endpoint
from radclient.packet import AuthenticatorMismatchError
from radclient.tests.fakeserver import FakeServer

USERS = {'alice': 'wonderland'}


class ExchangeTestCase(unittest.TestCase):
    """Talk to a RADIUS server running in a thread on the loopback
    interface."""

    def serve(self, **kwargs):
        kwargs.setdefault('users', USERS)
        server = FakeServer(**kwargs)
        server.start()
        self.addCleanup(server.stop)
        return server

    def connect(self, server, secret='testing123', **kwargs):
        kwargs.setdefault('timeout', 1)
        radius = Client('127.0.0.1', secret, authport=server.port,
                        acctport=server.port, **kwargs)
        self.addCleanup(radius.close)
        return radius


class AuthenticationTests(ExchangeTestCase):
    def setUp(self):
        self.server = self.serve()
        self.client = self.connect(self.server)

    def testAccept(self):
        self.assertEqual(self.client.authenticate('alice', 'wonderland'), True)
        self.assertEqual(len(self.server.received), 1)

    def testReject(self):
        self.assertEqual(self.client.authenticate('alice', 'wrong'), False)
        self.assertEqual(self.client.authenticate('bob', 'wonderland'), False)

    def testChap(self):
        self.assertEqual(
            self.client.authenticate('alice', 'wonderland', 'chap'), True)
        self.assertEqual(
            self.client.authenticate('alice', 'wrong', 'chap'), False)

    def testRejectCarriesReplyMessage(self):
        request = self.client.create_auth_packet(User_Name='alice',
                                                 password='wrong')
        reply = self.client.authenticate_packet(request)
        self.assertEqual(reply.code, packet.AccessReject)
        self.assertEqual(reply['Reply-Message'], ['Access denied'])

    def testSequentialRequests(self):
        for _ in range(5):
            self.assertTrue(self.client.authenticate('alice', 'wonderland'))
        ids = set(data[1] for data in self.server.received)
        self.assertEqual(len(ids), 5)

    def testWrongSecret(self):
        radius = self.connect(self.server, secret='not the secret')
        self.assertRaises(AuthenticatorMismatchError, radius.authenticate,
                          'alice', 'wonderland')
        self.assertEqual(len(self.server.received), 1)


class AccountingTests(ExchangeTestCase):
    def testAccount(self):
        server = self.serve()
        radius = self.connect(server)
        request = radius.create_acct_packet(User_Name='alice',
                                            Acct_Status_Type='Start',
                                            Acct_Session_Id='0001')
        reply = radius.account(request)
        self.assertEqual(reply.code, packet.AccountingResponse)
        self.assertEqual(reply.id, request.id)


class RetryTests(ExchangeTestCase):
    def testReplyAfterDroppedRequests(self):
        server = self.serve(drop=2)
        radius = self.connect(server, retries=3, timeout=0.3)
        self.assertEqual(radius.authenticate('alice', 'wonderland'), True)
        self.assertEqual(len(server.received), 3)
        self.assertEqual(len(set(server.received)), 1)

    def testSilentServer(self):
        server = self.serve(silent=True)
        radius = self.connect(server, retries=3, timeout=0.2)
        start = time.monotonic()
        self.assertRaises(Timeout, radius.authenticate, 'alice', 'wonderland')
        elapsed = time.monotonic() - start
        self.assertTrue(0.5 <= elapsed < 3.0, elapsed)
        time.sleep(0.1)
        self.assertEqual(len(server.received), 3)

    def testCorruptReplyIsNotRetried(self):
        server = self.serve(corrupt=True)
        radius = self.connect(server, retries=3)
        self.assertRaises(AuthenticatorMismatchError, radius.authenticate,
                          'alice', 'wonderland')
        self.assertEqual(len(server.received), 1)


class OneShotTests(ExchangeTestCase):
    def testCommunicate(self):
        server = self.serve()
        endpoint = Endpoint('127.0.0.1', 'testing123', server.port,
                            server.port)
        request = packet.AuthPacket(User_Name='alice', password='wonderland')
        reply = client.communicate(endpoint, request)
        self.assertEqual(reply.code, packet.AccessAccept)

        request = packet.AcctPacket(User_Name='alice',
                                    Acct_Status_Type='Stop')
        reply = client.communicate(endpoint, request, timeout=1)
        self.assertEqual(reply.code, packet.AccountingResponse)


class ConcurrencyTests(ExchangeTestCase):
    def testSharedClient(self):
        server = self.serve()
        radius = self.connect(server, timeout=2)
        results = []

        def worker():
            results.append(radius.authenticate('alice', 'wonderland'))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(results, [True] * 8)
        self.assertEqual(len(server.received), 8)


class PrebuiltRequestTests(ExchangeTestCase):
    def testPasswordHiddenByCaller(self):
        server = self.serve()
        radius = self.connect(server)
        request = radius.create_auth_packet(User_Name='alice')
        request['User-Password'] = request.pw_crypt('wonderland',
                                                    radius.secret)
        reply = radius.authenticate_packet(request)
        self.assertEqual(reply.code, packet.AccessAccept)


class CloseTests(ExchangeTestCase):
    def testCloseWakesPendingExchange(self):
        server = self.serve(silent=True)
        radius = self.connect(server, retries=3, timeout=2)
        errors = []

        def worker():
            try:
                radius.authenticate('alice', 'wonderland')
            except Exception as err:
                errors.append(err)

        thread = threading.Thread(target=worker)
        start = time.monotonic()
        thread.start()
        time.sleep(0.2)
        radius.close()
        thread.join(5)
        elapsed = time.monotonic() - start

        self.assertFalse(thread.is_alive())
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], CommunicationError)
        self.assertNotIsInstance(errors[0], Timeout)
        self.assertTrue(elapsed < 1.5, elapsed)
