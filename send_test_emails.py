#!/usr/bin/env python3
"""
Email Service Test Script

Checks the provider connection, then sends every transactional email to one
recipient and prints a summary.

Usage:
    python send_test_emails.py your-email@example.com

Without an argument the recipient is SMTP_USER, then test@example.com.
Configure EMAIL_PROVIDER / RESEND_API_KEY or SMTP_* in .env first.
"""

import asyncio
import os
import sys

# Ensure project root is on the path
ROOT_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, ROOT_DIR)

from app import build_email_service  # noqa: E402
from config import AppSettings  # noqa: E402
from infrastructure.http_client import HttpClient  # noqa: E402
from schemas.models.email import LoginContext  # noqa: E402
from services.diagnostics import TEST_KINDS, run_smoke_test  # noqa: E402
from services.mailer_service import MailerService  # noqa: E402

# Pause between sends so providers don't rate-limit the run
SEND_DELAY_SECONDS = 1.0


async def run(recipient: str) -> bool:
    settings = AppSettings()
    async with HttpClient(timeout=settings.email.geo_lookup_timeout_seconds) as geo_http:
        async with MailerService.from_settings(settings.email) as mailer:
            emails = build_email_service(settings, mailer, geo_http)
            print(f"📧 Provider: {mailer.active_provider.name}, sending to {recipient}\n")
            results = await run_smoke_test(
                mailer,
                emails,
                recipient,
                TEST_KINDS,
                login=LoginContext(
                    ip_address="192.168.1.1",
                    user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
                    location="New York, USA",
                ),
                delay_seconds=SEND_DELAY_SECONDS,
            )

    print("=" * 60)
    print("📊 Test Summary")
    print("=" * 60)
    for name in ("connection",) + TEST_KINDS:
        if name in results:
            print(f"{'✅' if results[name] else '❌'} {name}: {'PASSED' if results[name] else 'FAILED'}")
        else:
            print(f"⏭️  {name}: SKIPPED")
    print("=" * 60)

    passed = sum(1 for ok in results.values() if ok)
    total = 1 + len(TEST_KINDS)
    print(f"\n✨ {passed}/{total} checks passed\n")
    return passed == total


def main():
    recipient = (
        sys.argv[1] if len(sys.argv) > 1 else os.getenv("SMTP_USER") or "test@example.com"
    )
    try:
        ok = asyncio.run(run(recipient))
    except KeyboardInterrupt:
        print("\n👋 Stopped by user")
        sys.exit(130)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
