#!/usr/bin/env python3
"""Releases Notifier — Application Runner.

Performs pre-flight checks and launches the bot.

Usage:
    python scripts/run.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

BANNER = r"""
╔══════════════════════════════════════════════╗
║            Releases Notifier v1.0            ║
║     GitHub release alerts over Telegram      ║
╚══════════════════════════════════════════════╝
"""

REQUIRED_ENV_VARS = [
    "TELEGRAM_BOT_TOKEN",
]

REQUIRED_FILES = [
    "config/settings.yaml",
]


def preflight_checks() -> bool:
    """Check .env, required variables and config files; create data/ and logs/.

    Returns:
        True if all checks pass, False otherwise.
    """
    os.chdir(str(PROJECT_ROOT))
    ok = True

    env_path = PROJECT_ROOT / ".env"
    if not env_path.exists():
        print("❌ .env file not found!")
        print("   Copy .env.example to .env and fill in your bot token.")
        ok = False
    else:
        from dotenv import load_dotenv
        load_dotenv(env_path)
        print("✅ .env loaded")

    for var in REQUIRED_ENV_VARS:
        val = os.environ.get(var, "")
        if not val or val == "your_key_here":
            print(f"❌ {var} not set or invalid in .env")
            ok = False
        else:
            masked = val[:6] + "..." + val[-4:] if len(val) > 10 else "***"
            print(f"✅ {var} = {masked}")

    if os.environ.get("GITHUB_TOKEN"):
        print("✅ GITHUB_TOKEN set")
    else:
        os.environ.setdefault("GITHUB_TOKEN", "")
        print("⚠️  GITHUB_TOKEN not set (GitHub allows 60 requests/hour unauthenticated)")

    for f in REQUIRED_FILES:
        if not (PROJECT_ROOT / f).exists():
            print(f"❌ {f} not found!")
            ok = False
        else:
            print(f"✅ {f} exists")

    for d in ("data", "logs"):
        (PROJECT_ROOT / d).mkdir(exist_ok=True)
        print(f"✅ {d}/ directory ready")

    return ok


def main() -> None:
    print(BANNER)

    print("═══ Pre-flight Checks ═══\n")
    if not preflight_checks():
        print("\n❌ Pre-flight checks failed! Fix the issues above and try again.")
        sys.exit(1)

    print("\n✅ All checks passed!\n")

    from releases_notifier.main import main as app_main
    app_main()


if __name__ == "__main__":
    main()
