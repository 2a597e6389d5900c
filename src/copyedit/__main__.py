import sys

from src.copyedit.cli import main

# python -m src.copyedit run --simulate
if __name__ == "__main__":
    sys.exit(main())
