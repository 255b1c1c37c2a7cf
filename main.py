"""
CrowdScore - Web Server Entry Point
===================================

Run this to start the site:
    python main.py

Then open http://127.0.0.1:8000 in your browser.
Demo accounts (password "password"): admin@admin.com,
empresa@relogiosgeniais.com, usuario@email.com.
"""

import logging

import uvicorn

from crowdscore.infrastructure.config import get_settings


def main():
    """Start the web server."""
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    print("\n" + "=" * 50)
    print("   CrowdScore - Crowdfunding Delay Reviews")
    print("=" * 50)
    print(f"\n   Starting server at http://{settings.web.host}:{settings.web.port}")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "crowdscore.web.app:app",
        host=settings.web.host,
        port=settings.web.port,
        reload=settings.web.reload,
        log_level="info"
    )


if __name__ == "__main__":
    main()
