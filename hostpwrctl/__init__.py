"""
hostpwrctl - host power transition control

Requests a chassis/host power transition from the OpenBMC state manager
over D-Bus and waits for PropertiesChanged notifications confirming that
both entities reached the expected state, bounded by a timeout.
"""

__version__ = "0.1.0"
