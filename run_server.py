#!/usr/bin/env python3
"""Run the loanbook web server."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from loanbook.config import get_server_config
from loanbook.logging import setup_logging


def main():
    import uvicorn

    cfg = get_server_config()
    setup_logging(cfg.log_level)

    print(f"""
    ╔═══════════════════════════════════════════════════════╗
    ║           loanbook Server                             ║
    ╠═══════════════════════════════════════════════════════╣
    ║  URL: http://{cfg.host}:{cfg.port:<5}                            ║
    ║  API Docs: http://{cfg.host}:{cfg.port:<5}/docs                  ║
    ║  Hot Reload: {str(cfg.reload):<5}                              ║
    ╚═══════════════════════════════════════════════════════╝
    """)

    uvicorn.run(
        "server.app:app",
        host=cfg.host,
        port=cfg.port,
        reload=cfg.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
