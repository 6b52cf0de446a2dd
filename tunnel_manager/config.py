"""Configuration settings and logging setup"""

import logging
import os

# cloudflared daemon
CLOUDFLARED_BIN = os.environ.get("CLOUDFLARED_BIN", "cloudflared")
CLOUDFLARED_DIR = os.path.expanduser(os.environ.get("CLOUDFLARED_DIR", "~/.cloudflared"))
CLOUDFLARED_CERT = os.environ.get("CLOUDFLARED_CERT", os.path.join(CLOUDFLARED_DIR, "cert.pem"))

# Advisory auth cache (never authoritative)
STATE_FILE = os.environ.get("STATE_FILE", "/etc/cftunnelhelper/config.json")

# Manual fallback for completing login in a browser
AUTH_FALLBACK_URL = os.environ.get("AUTH_FALLBACK_URL", "https://dash.cloudflare.com/profile/api-tokens")

# Timeouts (seconds)
COMMAND_TIMEOUT = float(os.environ.get("COMMAND_TIMEOUT", "30"))
LOGIN_TIMEOUT = float(os.environ.get("LOGIN_TIMEOUT", "300"))
AUTH_CHECK_TIMEOUT = float(os.environ.get("AUTH_CHECK_TIMEOUT", "10"))
LOGIN_GRACE_PERIOD = float(os.environ.get("LOGIN_GRACE_PERIOD", "2"))

# Host metrics
CPU_SAMPLE_INTERVAL = float(os.environ.get("CPU_SAMPLE_INTERVAL", "0.1"))
DISK_PATH = os.environ.get("DISK_PATH", "/")

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("LOG_FILE", "")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Configure logging
_handlers = [logging.StreamHandler()]
if LOG_FILE:
    os.makedirs(os.path.dirname(LOG_FILE) or ".", exist_ok=True)
    _handlers.append(logging.FileHandler(LOG_FILE))

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format=LOG_FORMAT,
    handlers=_handlers
)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name"""
    return logging.getLogger(name)
