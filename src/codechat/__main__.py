"""Allow ``python -m codechat`` to start a chat session."""

from .cli import launch

if __name__ == "__main__":
    launch()
