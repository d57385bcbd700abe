#!/usr/bin/env python3
"""
Serve the local dashboard API.
"""

import argparse
import sys
from pathlib import Path

import dotenv
dotenv.load_dotenv()

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn


def main():
    parser = argparse.ArgumentParser(description='Serve the Burhanpur admin API')
    parser.add_argument('--port', type=int, default=8000,
                        help='Port to serve on (default: 8000)')
    parser.add_argument('--host', default='127.0.0.1',
                        help='Host to bind to (default: 127.0.0.1)')
    parser.add_argument('--reload', action='store_true',
                        help='Reload on code changes')
    args = parser.parse_args()

    print(f"🚀 Serving API on http://{args.host}:{args.port}")
    uvicorn.run("burhanpur_admin.api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
