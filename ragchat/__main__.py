"""``python -m ragchat``; settings load ``.env`` themselves."""

from .cli import main

if __name__ == "__main__":
    main()
