"""Allow ``python -m artresonance``."""

from .cli import main

if __name__ == "__main__":
    main()
