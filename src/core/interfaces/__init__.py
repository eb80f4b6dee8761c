"""Core interfaces/abstractions.

Why:
- Defines contracts (Protocol) implemented by concrete adapters.
- Services depend on abstractions, so tests can inject fakes.
"""
