"""Allow running rvbuild as a module: python -m rvbuild."""

from rvbuild.cli import main

if __name__ == "__main__":
    main()
