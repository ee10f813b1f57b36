"""
PascalLint - incremental lint engine for Delphi / Object Pascal.

Packages:
- ``pascallint.engine``: parser, caches, configuration, dispatch and fixes
- ``pascallint.rules``: built-in rules
- ``pascallint.cli``: the ``pascallint`` command
- ``pascallint.app``: HTTP lint service
"""

__version__ = "0.3.0"
