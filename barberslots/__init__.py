"""
barberslots - bookable slot engine for small service businesses.
"""

__version__ = "0.1.0"
