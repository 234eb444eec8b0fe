"""Package entry point for ``python -m cleantake``.

WHY: Users run ``python -m cleantake take.wav`` to analyze a recording,
or ``python -m cleantake --serve`` to start the HTTP API for the
browser front-end.

HOW: Checks sys.argv for ``--serve``. If present, starts uvicorn with
the FastAPI app. Otherwise delegates to the CLI's main().
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from cleantake.server.app import run_api
        run_api()
    else:
        from cleantake.cli import main
        main()
