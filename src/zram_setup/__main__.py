"""Enables execution via: python -m zram_setup"""

from zram_setup.app import main

if __name__ == "__main__":
    raise SystemExit(main())
