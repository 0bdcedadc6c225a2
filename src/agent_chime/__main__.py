"""Entry point for running agent-chime as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the agent-chime CLI application."""
    app()


if __name__ == "__main__":
    main()
