"""
__main__.py - Allow running cmdwarden with ``python -m cmdwarden``
"""

from .cli import cli

if __name__ == "__main__":
    cli()
