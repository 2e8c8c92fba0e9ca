"""ADCS certificate expiry probe for PRTG custom sensors."""

__version__ = "0.1.0"
