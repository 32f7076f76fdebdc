#!/usr/bin/env python3
"""
Production application runner for the Juri legal assistant
"""
import os
import sys
import argparse
import json
import logging
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

import config
from config import settings


def setup_production_logging():
    """Setup production-grade logging"""
    from utils.logging import setup_logging

    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)

    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file or str(logs_dir / "app.log")
    )


def run_server():
    """Run the application server"""
    import uvicorn
    from main import app

    setup_production_logging()

    logger = logging.getLogger(__name__)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Host: {settings.host}:{settings.port}")
    logger.info(f"Workers: {settings.workers}")
    logger.info(f"Primary chat backend: {settings.brev_server_url or 'not configured'}")

    uvicorn_config = {
        "app": app,
        "host": settings.host,
        "port": settings.port,
        "workers": settings.workers,
        "log_level": settings.log_level.lower(),
        "access_log": True,
        "server_header": False,
        "date_header": False,
        "proxy_headers": True,
        "forwarded_allow_ips": "*"
    }

    # Add SSL configuration if certificates are available
    ssl_keyfile = os.getenv("SSL_KEYFILE")
    ssl_certfile = os.getenv("SSL_CERTFILE")

    if ssl_keyfile and ssl_certfile:
        uvicorn_config.update({
            "ssl_keyfile": ssl_keyfile,
            "ssl_certfile": ssl_certfile
        })
        logger.info("SSL/TLS enabled")

    uvicorn.run(**uvicorn_config)


def run_health_check():
    """Run a health check against the running service"""
    import requests

    host = "localhost" if settings.host == "0.0.0.0" else settings.host
    base_url = f"http://{host}:{settings.port}"

    try:
        response = requests.get(f"{base_url}/health", timeout=10)
        print(f"Health Check Status: {response.status_code}")
        print(json.dumps(response.json(), indent=2))

        response = requests.get(f"{base_url}/health/detailed", timeout=30)
        print(f"\nDetailed Health Check Status: {response.status_code}")
        print(json.dumps(response.json(), indent=2))

        return response.status_code == 200

    except requests.exceptions.RequestException as e:
        print(f"Health check failed: {e}")
        return False


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Juri Legal Assistant Runner")
    parser.add_argument(
        "command",
        choices=["server", "health"],
        help="Command to run"
    )
    parser.add_argument(
        "--config",
        help="Path to configuration file"
    )

    args = parser.parse_args()

    # Modules imported after this point read the reloaded settings
    if args.config:
        global settings
        settings = config.settings = config.Settings(_env_file=args.config)

    if args.command == "server":
        run_server()
    elif args.command == "health":
        success = run_health_check()
        sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
