"""Token swap service: price feed catalog, exchange math and the swap form."""

__version__ = "0.1.0"
