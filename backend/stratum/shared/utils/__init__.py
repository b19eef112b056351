"""
Utilities Module

- SecurityUtils: identity token minting and verification
"""

from stratum.shared.utils.security import SecurityUtils

__all__ = ["SecurityUtils"]
