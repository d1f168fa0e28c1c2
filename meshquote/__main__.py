"""MeshQuote - Analyze 3D model files and quote their print cost."""

import sys
from typing import Optional

from meshquote.cli.app import app


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for ``python -m meshquote``."""
    try:
        app(args=argv, prog_name="meshquote")
        return 0
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
