"""
hwview - Device Manager style hardware viewer core.

Enumerates the devices known to the operating system and:
- Classifies them into a fixed set of user-visible categories
- Groups them into a host -> category -> device tree
- Exports and re-imports portable snapshot documents (.dmexport)
"""

__version__ = "0.1.0"
__author__ = "hwview Contributors"

APPLICATION_NAME = "hwview"
