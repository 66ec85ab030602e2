"""
Convenience entry point for running craftslot directly.

Usage: python -m craftslot [command] [options]
"""

from craftslot.cli.app import app

if __name__ == "__main__":
    app()
