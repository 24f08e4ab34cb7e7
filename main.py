"""
Tangle Promoter - CLI Entrypoint
================================
Promotion passes over the persisted bundle lists.

Commands:
    python main.py run
    python main.py run --failed-only
    python main.py status
"""

from tangle_promoter.cli import main

if __name__ == "__main__":
    main()
