"""
SGPC Kernel - shared infrastructure for the project management core

Provides what every module builds on:
- Declarative ORM base with UUID keys and fixed-point decimals
- Engine/session management with explicit transaction scopes
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging
- Injectable clock and declarative workflow definitions
"""

__version__ = "0.1.0"
