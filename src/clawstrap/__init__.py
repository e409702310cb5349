"""
clawstrap: one-shot provisioning for an always-on OpenClaw agent host.

Turns a fresh Raspberry Pi OS (64-bit) install into a configured,
self-restarting OpenClaw agent: runtimes, agent binary, config,
persona documents, systemd unit, and a final health check.
Safe to re-run: every step checks whether it is already done.
"""

import os

__version__ = "0.1.0"
__author__ = "clawstrap contributors"

OPENCLAW_HOME = os.environ.get("OPENCLAW_HOME", "~/.openclaw")
