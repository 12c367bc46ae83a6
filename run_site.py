#!/usr/bin/env python3
"""Course site — catalog, schedule and application pages.

Launch: python3 run_site.py
Serves at http://0.0.0.0:8000 (or PORT env var)
"""

import logging

import uvicorn

from course_site.config import HOST, LOG_LEVEL, PORT, SHEETS_API_URL, SITE_NAME


def main():
    print("=" * 60)
    print(f"  {SITE_NAME}")
    print("=" * 60)

    if not SHEETS_API_URL:
        print("\n  ERROR: SHEETS_API_URL not set. Set environment variables:")
        print("    SHEETS_API_URL (the spreadsheet web app URL)")
        raise SystemExit(1)

    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"\n  Sheets API: {SHEETS_API_URL}")
    url = f"http://{HOST}:{PORT}"
    print(f"  Site: {url}")
    print("  Press Ctrl+C to stop\n")

    from course_site.app import create_app
    app = create_app()
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
