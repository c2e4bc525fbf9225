"""
Upstream market data clients.

Every public fetch converts upstream failures into None or an empty list so
the core never sees an exception from the network.
"""
