"""Python RADIUS client code.

radclient is an implementation of a RADIUS client as described in
RFC 2865 and RFC 2866. It takes care of all the details like building
RADIUS packets, computing and checking authenticators, sending them
with retries and decoding responses.

Here is an example of doing a authentication request::

  from radclient.client import Client

  srv = Client(server="radius.my.domain", secret="s3cr3t")

  if srv.authenticate("wichert", "password"):
      print("access accepted")
  else:
      print("access denied")

Full control over the request is available as well::

  import radclient.packet

  req = srv.create_auth_packet(User_Name="wichert", password="password",
                               NAS_Identifier="localhost")
  reply = srv.authenticate_packet(req)
  if reply.code == radclient.packet.AccessAccept:
      print("access accepted")

  print("Attributes returned by server:")
  for i in reply.keys():
      print("%s: %s" % (i, reply[i]))


This package contains five modules:

  - client: RADIUS client code
  - dictionary: RADIUS attribute definitions
  - host: endpoint and host configuration
  - packet: a RADIUS packet as send to/from servers
  - tools: attribute value encoding
"""

__docformat__ = 'epytext en'

__version__ = '1.0'

__all__ = ['client', 'dictionary', 'host', 'packet', 'tools']
