"""
Sakina Payments Backend — Uvicorn Launcher

Usage:
    python run.py
    python run.py --port 8000 --reload
    python run.py --workers 4

The gateway must be able to reach PUBLIC_BASE_URL/api/payment/callback;
the launcher prints the URL it will advertise so a misconfigured tunnel
is obvious before the first payment.
"""
import argparse

import uvicorn

from app.config import get_settings


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Sakina storefront payments backend")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable hot reload for development")
    parser.add_argument("--workers", type=int, default=1, help="Number of workers, ignored with --reload")
    args = parser.parse_args()

    print(f"Sakina Payments API on http://{args.host}:{args.port} (docs at /docs)")
    print(f"Gateway callback URL: {settings.callback_url}")

    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1 if args.reload else args.workers,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
