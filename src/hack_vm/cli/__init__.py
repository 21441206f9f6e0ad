"""
Hack VM Command-Line Interface
==============================

- **vmtranslate**: VM-to-Hack-assembly translator

Implemented as a Click application with help and error reporting.
"""

__all__ = ["vmtranslate"]
