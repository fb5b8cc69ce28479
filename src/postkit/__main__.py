"""Allow ``python -m postkit``."""

from postkit.cli.app import main

if __name__ == "__main__":
    main()
