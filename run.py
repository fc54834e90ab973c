#!/usr/bin/env python3
"""
Application startup script with command line overrides.
"""

import os
import sys
import argparse


def main():
    """Main startup function"""
    parser = argparse.ArgumentParser(description="Heritage Console Content Engine Server")
    parser.add_argument(
        "--env",
        choices=["development", "staging", "production", "testing"],
        default=None,
        help="Environment to run (default: from ENVIRONMENT env var or development)"
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (overrides config)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (overrides config)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker processes (overrides config)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload (overrides config)"
    )
    parser.add_argument(
        "--mock-translator",
        action="store_true",
        help="Use the offline mock translation provider"
    )

    args = parser.parse_args()

    if args.env:
        os.environ["ENVIRONMENT"] = args.env
    if args.mock_translator:
        os.environ["TRANSLATOR_USE_MOCK"] = "true"

    from heritage_console.config import reload_settings

    try:
        settings = reload_settings()
    except Exception as e:
        print(f"✗ Failed to load configuration: {e}")
        sys.exit(1)

    host = args.host or settings.host
    port = args.port or settings.port
    reload = args.reload or settings.reload
    workers = args.workers or settings.workers

    print(f"🚀 Starting {settings.app_name} v{settings.app_version}")
    print(f"   Environment: {settings.environment.value}")
    print(f"   Host: {host}")
    print(f"   Port: {port}")
    print(f"   Workers: {workers}")
    print(f"   Reload: {reload}")
    print(f"   Languages: {', '.join(settings.cascade.supported_languages)}")
    print(f"   Log Level: {settings.log_level.value}")

    import uvicorn

    uvicorn.run(
        "heritage_console.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers if not reload else 1,
        log_level=settings.log_level.value.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
