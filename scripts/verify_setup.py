#!/usr/bin/env python3
"""
Setup Verification Script

Checks that the configured Figma token and Anthropic key work and that every
monitored file is reachable. Run this after editing ~/.figma-responder/config.json
or exporting FIGMA_ACCESS_TOKEN / ANTHROPIC_API_KEY.

Usage:
    python scripts/verify_setup.py [--skip-llm] [--skip-files]
"""

import sys
import asyncio
import argparse
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


async def verify(config, skip_llm: bool, skip_files: bool) -> bool:
    from responder.common.llm_client import verify_api_key
    from responder.figma.client import FigmaClient

    ok = True

    if not config.figma.access_token:
        print("[Verify] ERROR: No Figma access token configured")
        ok = False
    else:
        print(f"[Verify] Checking Figma token against {config.figma.api_base}...")
        async with FigmaClient(config.figma.access_token, api_base=config.figma.api_base,
                               timeout=config.figma.timeout) as figma:
            try:
                user = await figma.get_current_user()
                print(f"[Verify] Figma token OK (user: {user.get('handle', '?')})")
            except Exception as e:
                print(f"[Verify] ERROR: Figma token rejected: {e}")
                ok = False
            else:
                if not skip_files:
                    files = config.get_monitored_files()
                    if not files:
                        print("[Verify] WARNING: No monitored files configured")
                    for file_key in files:
                        try:
                            name = await figma.get_document_name(file_key)
                            print(f"[Verify]   {file_key}: {name}")
                        except Exception as e:
                            print(f"[Verify]   {file_key}: ERROR {e}")
                            ok = False

    if skip_llm:
        print("[Verify] Skipping Anthropic key check")
    elif not config.llm.anthropic_api_key:
        print("[Verify] ERROR: No Anthropic API key configured")
        ok = False
    else:
        print(f"[Verify] Checking Anthropic key with model {config.get_model()}...")
        if await verify_api_key(config.llm.anthropic_api_key, model=config.get_model()):
            print("[Verify] Anthropic key OK")
        else:
            print("[Verify] ERROR: Anthropic key rejected")
            ok = False

    return ok


def main():
    parser = argparse.ArgumentParser(description="Verify Figma and Anthropic credentials")
    parser.add_argument("--skip-llm", action="store_true", help="Do not send a test completion")
    parser.add_argument("--skip-files", action="store_true", help="Do not check monitored files")
    args = parser.parse_args()

    from dotenv import load_dotenv
    from responder.common.config import load_config, CONFIG_PATH

    load_dotenv()
    config = load_config()
    print(f"[Verify] Config: {CONFIG_PATH}")
    print(f"[Verify] Trigger: {config.get_trigger()!r}, interval: {config.get_polling_interval()}s")

    if not asyncio.run(verify(config, args.skip_llm, args.skip_files)):
        print("[Verify] Setup incomplete")
        sys.exit(1)

    print("[Verify] All checks passed")


if __name__ == "__main__":
    main()
