#!/usr/bin/env python3
"""
Headless poller - keeps the notification boards fresh and prints pending counts.
"""

import argparse
import sys
import time
from pathlib import Path

import dotenv
dotenv.load_dotenv()

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from util.logging import logger
from burhanpur_admin.core import config
from burhanpur_admin.core.context import build_context


def report(ctx):
    counts = {kind.value: board.pending_count for kind, board in ctx.boards.items()}
    print("🔔 pending: " + ", ".join(f"{k}={v}" for k, v in counts.items()))


def main():
    """Start both boards and print counts whenever they change."""
    parser = argparse.ArgumentParser(description='Poll Burhanpur admin notifications')
    parser.add_argument('--once', action='store_true',
                        help='Fetch once, print counts and exit')
    args = parser.parse_args()

    ctx = build_context()
    try:
        if args.once:
            for board in ctx.boards.values():
                board.refresh(force=True)
            report(ctx)
            return 0

        for board in ctx.boards.values():
            board.add_listener(lambda _view: report(ctx))

        print(f"🏃 Polling every {config.ADMIN_POLL_INTERVAL_SEC}s (Ctrl+C to stop)")
        ctx.start()
        while True:
            time.sleep(1)

    except KeyboardInterrupt:
        print("\n👋 Shutting down gracefully...")
        return 0
    except Exception as e:
        print(f"💥 Critical error: {e}")
        logger.error(f"Poller failed: {e}")
        return 1
    finally:
        ctx.stop()


if __name__ == "__main__":
    sys.exit(main())
