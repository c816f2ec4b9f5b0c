# =============================================================================
# Hexmail Entry Point for `python -m hexmail`
# =============================================================================
# Equivalent to running the 'hexmail' command after installation.
# =============================================================================

import sys

from hexmail.app import main

if __name__ == "__main__":
    sys.exit(main())
