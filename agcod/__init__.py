"""
Incentives API Gift-Card Issuer.

Issues single-use gift-card claim codes by sending requests signed with
AWS Signature Version 4 to the incentives API.
"""

__version__ = "1.0.0"

from agcod.cli import main

__all__ = ["main", "__version__"]
