"""
Allow running the MCP server as a Python module.

Usage:
    python -m policy_generator
"""

from .stdio_server import main

if __name__ == "__main__":
    main()
