"""Entry point for ``python -m xmlbuilder``."""

from .cli import app

if __name__ == "__main__":
    app()
