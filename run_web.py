"""Run the campaign timeline web server."""

import sys

from timekeeper.main import main

if __name__ == "__main__":
    print("=" * 50)
    print("  Timekeeper - Campaign Timeline Server")
    print("=" * 50)
    print()
    print("Press Ctrl+C to stop")
    print()

    sys.exit(main())
