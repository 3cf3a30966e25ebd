"""Allow running as ``python -m focusflow``."""

from focusflow.cli.main import app

if __name__ == "__main__":
    app()
