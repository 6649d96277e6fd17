"""forksh command line entry point."""

from forksh.cli.app import app

if __name__ == "__main__":
    app()
