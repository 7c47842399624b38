"""
Entry point for ``python -m barberslots``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
