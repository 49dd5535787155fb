"""Tagging Policy Generator.

Builds cloud tagging policies in the canonical (MCP) format and converts
them to and from AWS Organizations tag policies, GCP label policies and
Azure Policy initiatives.
"""

__version__ = "1.0.0"
