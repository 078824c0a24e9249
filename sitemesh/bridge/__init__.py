"""Bridge layer between sitemesh and the gossip fabric underneath it.

Modules
-------
transport
    The ``GossipNetwork`` protocol a fabric must satisfy (subscribe to a
    topic, get outbound/inbound/ready handles) and ``LocalNetwork``, an
    in-process fabric used by the demo and the test-suite.
"""
