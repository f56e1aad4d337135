"""POS terminal: cart pricing, checkout and inventory alerting core"""

__version__ = "1.0.0"
