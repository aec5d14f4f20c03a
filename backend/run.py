"""
Start the Support Desk Ticket API with uvicorn.

    python run.py                 # host/port from API_HOST / API_PORT
    python run.py --reload        # auto-reload while developing
    python run.py --seed          # seed departments, SLA defaults and admin first
"""
import argparse

import uvicorn

from helpdesk.config.settings import settings


def parse_args():
    parser = argparse.ArgumentParser(description="Support Desk Ticket API server")
    parser.add_argument("--host", default=settings.api_host, help=f"bind address (default: {settings.api_host})")
    parser.add_argument("--port", type=int, default=settings.api_port, help=f"bind port (default: {settings.api_port})")
    parser.add_argument("--reload", action="store_true", help="restart on code changes")
    parser.add_argument("--workers", type=int, default=1, help="worker processes, ignored with --reload")
    parser.add_argument("--seed", action="store_true", help="run scripts/seed_data.py before serving")
    return parser.parse_args()


def main():
    args = parse_args()

    if args.seed:
        from scripts.seed_data import main as seed
        seed()

    workers = 1 if args.reload else max(args.workers, 1)
    print(f"Support Desk API on http://{args.host}:{args.port} (env={settings.environment}, workers={workers})")

    uvicorn.run(
        "helpdesk.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
