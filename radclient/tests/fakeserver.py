import socket
import threading

from radclient import packet


class FakeServer(threading.Thread):
    """Minimal RADIUS server for exchange tests. It listens on an
    ephemeral port of 127.0.0.1 and handles authentication and
    accounting requests on that single port.

    :ivar   users: plaintext passwords by user name
    :ivar    drop: number of requests to ignore before answering
    :ivar  silent: never answer
    :ivar corrupt: damage the Response Authenticator of every reply
    :ivar received: raw requests received so far
    """

    def __init__(self, secret=b'testing123', users=None, drop=0,
                 silent=False, corrupt=False):
        threading.Thread.__init__(self, daemon=True)
        self.secret = secret
        self.users = users if users is not None else {}
        self.drop = drop
        self.silent = silent
        self.corrupt = corrupt
        self.received = []
        self._stop_serving = threading.Event()
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(('127.0.0.1', 0))
        self.sock.settimeout(0.05)
        self.port = self.sock.getsockname()[1]

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.stop()

    def stop(self):
        self._stop_serving.set()
        self.join()
        self.sock.close()

    def run(self):
        while not self._stop_serving.is_set():
            try:
                (data, source) = self.sock.recvfrom(packet.MaxPacketSize)
            except socket.timeout:
                continue
            self.received.append(data)
            if self.silent or len(self.received) <= self.drop:
                continue
            reply = self.handle(data)
            if reply is not None:
                self.sock.sendto(reply, source)

    def _check_password(self, req):
        user = req['User-Name'][0]
        if user not in self.users:
            return False
        if 3 in req:
            return req.verify_chap_password(self.users[user])
        try:
            password = req.pw_decrypt(req[2][0], self.secret)
        except UnicodeDecodeError:
            return False
        return password == self.users[user]

    def handle(self, data):
        if data[0] == packet.AccessRequest:
            req = packet.AuthPacket(packet=data)
            if self._check_password(req):
                reply = req.create_reply(packet.AccessAccept)
            else:
                reply = req.create_reply(packet.AccessReject,
                                         Reply_Message='Access denied')
        elif data[0] == packet.AccountingRequest:
            req = packet.AcctPacket(packet=data)
            if not req.verify_request(self.secret):
                return None
            reply = req.create_reply()
        else:
            return None

        raw = reply.reply_packet(self.secret)
        if self.corrupt:
            raw = raw[:4] + bytes([raw[4] ^ 0xff]) + raw[5:]
        return raw
