"""RIP northbound: transactional configuration for a RIP routing daemon."""

__version__ = "0.1.0"
