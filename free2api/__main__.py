"""Run the gateway: python -m free2api [config.yaml]"""

import sys

from .main import run

if __name__ == "__main__":
    run(sys.argv[1] if len(sys.argv) > 1 else None)
