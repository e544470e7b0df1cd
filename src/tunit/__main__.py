"""Allow ``python -m tunit``."""

from tunit.cli import main

if __name__ == "__main__":
    main()
