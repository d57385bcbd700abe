#!/usr/bin/env python3
"""
Dashboard entrypoint - validates configuration and launches the approval TUI.
"""

import sys
from pathlib import Path

# Load environment variables from .env file first
import dotenv
dotenv.load_dotenv()

# Add project root to path for imports (burhanpur_admin/ and tui/ are both in project root)
sys.path.insert(0, str(Path(__file__).parent.parent))


def main():
    """Dashboard entrypoint - refuses to start on invalid configuration."""
    try:
        from burhanpur_admin.core.config import validate_config

        issues = validate_config()
        if issues:
            print("❌ Configuration problems:")
            for issue in issues:
                print(f"   - {issue}")
            return 1

        from tui.main import main as tui_main
        tui_main()
        return 0

    except KeyboardInterrupt:
        print("\nℹ️  Dashboard interrupted")
        return 0
    except Exception as e:
        print(f"❌ Dashboard startup failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
