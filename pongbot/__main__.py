"""Entry point for `python -m pongbot`."""

from pongbot.main import main

if __name__ == "__main__":
    main()
