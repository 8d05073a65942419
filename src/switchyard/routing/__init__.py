"""Routing — routes, groups, and the collector that builds them.

Routes are defined during setup. Each one flattens its groups' middleware
and its own into a single stack the first time it is finalized.
"""
