"""Allow running dotctl as ``python -m dotctl``."""

from dotctl.cli.main import app

if __name__ == "__main__":
    app()
