"""Package entry point for ``python -m chapterizer``.

RULES:
- ``--api`` starts the HTTP API with uvicorn
- Without ``--api``, falls through to the CLI
"""

import sys

if __name__ == "__main__":
    if "--api" in sys.argv:
        from chapterizer.server.app import run_api
        run_api()
    else:
        from chapterizer.cli import main
        main()
