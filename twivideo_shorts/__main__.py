"""Run the command line interface with `python -m twivideo_shorts`."""
from .cli import app

if __name__ == "__main__":
    app()
