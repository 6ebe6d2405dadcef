"""Main entry point for scriptanchor CLI when run as a module."""

from scriptanchor.cli.main import main

if __name__ == "__main__":  # pragma: no cover
    main()
