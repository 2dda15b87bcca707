# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/migration/notifier.py
"""
Migration notifications via webhook and/or e-mail.
Pure side effect: delivery problems are logged and never reach the scheduler.
"""

from __future__ import annotations

import logging
import smtplib
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from typing import Any, Dict, Optional

import requests

from .models import WorkItem, WorkItemStatus


@dataclass(frozen=True)
class Notification:
    destination: str
    subject: str
    body: str
    level: str
    details: Dict[str, Any]


class MigrationNotifier:
    """
    Sends notifications when an item starts running and when it ends.

    Config keys:
      enabled, on_start, on_success, on_failure
      webhook_url, webhook_type ('slack' | 'discord' | 'generic')
      email_to, email_from, email_smtp_host, email_smtp_port,
      email_username, email_password
    """

    def __init__(self, logger: logging.Logger, config: Optional[Dict[str, Any]] = None):
        self.logger = logger
        config = dict(config or {})
        self.enabled = bool(config.get("enabled", False))

        self.on_start = bool(config.get("on_start", True))
        self.on_success = bool(config.get("on_success", True))
        self.on_failure = bool(config.get("on_failure", True))

        self.webhook_url = config.get("webhook_url")
        self.webhook_type = str(config.get("webhook_type") or "generic")

        self.email_to = config.get("email_to")
        self.email_from = config.get("email_from")
        self.email_smtp_host = config.get("email_smtp_host")
        self.email_smtp_port = int(config.get("email_smtp_port") or 25)
        self.email_username = config.get("email_username")
        self.email_password = config.get("email_password")

        # emitted events by name, plus "delivery_failed"
        self.stats: Counter = Counter()

        if self.enabled:
            self.logger.info("🔔 Notifications enabled")
            if self.webhook_url:
                self.logger.info("  Webhook: %s", self.webhook_type)
            if self.email_to:
                self.logger.info("  Email: %s → %s", self.email_from, self.email_to)

    # -- events -------------------------------------------------------------

    def notify_started(self, item: WorkItem) -> None:
        if not self.enabled or not self.on_start:
            return
        self._emit(self.build(item, "started"))

    def notify_finished(self, item: WorkItem) -> None:
        if not self.enabled:
            return
        if item.status == WorkItemStatus.SUCCEEDED and not self.on_success:
            return
        if item.status.error and not self.on_failure:
            return
        self._emit(self.build(item, item.status.value.lower()))

    # -- formatting ---------------------------------------------------------

    def build(self, item: WorkItem, event: str) -> Notification:
        network = f"{item.target_switch}/{item.target_port_group}" if item.target_switch else item.target_port_group
        details: Dict[str, Any] = {
            "event": event,
            "vm": item.vm_name,
            "application": item.application,
            "source_vc": item.source_vc,
            "target_vc": item.target_vc,
            "cluster": item.target_cluster,
            "datastore": item.resolution.datastore.name if item.resolution else item.target_datastore,
            "network": network,
            "start_time": item.start_time.isoformat(timespec="seconds") if item.start_time else "",
            "end_time": item.end_time.isoformat(timespec="seconds") if item.end_time else "",
            "duration_minutes": item.duration_minutes if item.duration_minutes is not None else "",
            "used_space_gb": round(item.used_space_gb, 2) if item.used_space_gb is not None else "",
            "throughput_gb_per_min": round(item.throughput_gb_per_min, 2),
        }
        if item.notes:
            details["notes"] = item.notes

        if event == "started":
            subject = f"Migration started: {item.vm_name}"
            level = "info"
        elif event == WorkItemStatus.SUCCEEDED.value.lower():
            subject = f"Migration succeeded: {item.vm_name}"
            level = "success"
        else:
            subject = f"Migration {event}: {item.vm_name}"
            level = "error"

        if item.application:
            subject += f" ({item.application})"

        lines = [f"{k}: {v}" for k, v in details.items() if k != "event"]
        body = "\n".join([subject, "", "Details:", "=" * 60, *lines, "=" * 60, ""])
        destination = self.email_to or self.webhook_url or ""
        return Notification(destination=str(destination), subject=subject, body=body, level=level, details=details)

    def _format_slack(self, n: Notification) -> Dict[str, Any]:
        color_map = {"success": "#36a64f", "info": "#439fe0", "error": "#ff0000"}
        return {
            "attachments": [{
                "color": color_map.get(n.level, "#808080"),
                "title": n.subject,
                "fields": [
                    {"title": k, "value": str(v), "short": True}
                    for k, v in n.details.items()
                    if k != "event"
                ],
                "footer": "vc2vc",
                "ts": int(datetime.now().timestamp()),
            }]
        }

    def _format_discord(self, n: Notification) -> Dict[str, Any]:
        color_map = {"success": 3066993, "info": 3447003, "error": 15158332}
        return {
            "embeds": [{
                "title": n.subject,
                "color": color_map.get(n.level, 8421504),
                "fields": [
                    {"name": k, "value": str(v) or "-", "inline": True}
                    for k, v in n.details.items()
                    if k != "event"
                ],
                "footer": {"text": "vc2vc"},
                "timestamp": datetime.now().isoformat(),
            }]
        }

    def _format_generic(self, n: Notification) -> Dict[str, Any]:
        return {
            "title": n.subject,
            "message": n.body,
            "level": n.level,
            "details": n.details,
            "source": "vc2vc",
            "timestamp": datetime.now().isoformat(),
        }

    # -- delivery -----------------------------------------------------------

    def _emit(self, n: Notification) -> None:
        self.stats[n.details["event"]] += 1
        if self.webhook_url:
            self._send_webhook(n)
        if self.email_to:
            self._send_email(n)

    def _send_webhook(self, n: Notification) -> None:
        if self.webhook_type == "slack":
            payload = self._format_slack(n)
        elif self.webhook_type == "discord":
            payload = self._format_discord(n)
        else:
            payload = self._format_generic(n)
        try:
            response = requests.post(self.webhook_url, json=payload, timeout=10)
            response.raise_for_status()
            self.logger.debug("Webhook sent: %s", n.subject)
        except Exception as e:
            self.stats["delivery_failed"] += 1
            self.logger.error("Failed to send webhook: %s", e)

    def _send_email(self, n: Notification) -> None:
        if not all([self.email_smtp_host, self.email_from, self.email_to]):
            self.logger.warning("Email not configured properly, skipping")
            return

        msg = EmailMessage()
        msg["Subject"] = f"[vc2vc] {n.subject}"
        msg["From"] = self.email_from
        msg["To"] = self.email_to
        msg.set_content(n.body)

        try:
            with smtplib.SMTP(self.email_smtp_host, self.email_smtp_port, timeout=30) as server:
                if self.email_username and self.email_password:
                    server.starttls()
                    server.login(self.email_username, self.email_password)
                server.send_message(msg)
            self.logger.debug("Email sent: %s", n.subject)
        except Exception as e:
            self.stats["delivery_failed"] += 1
            self.logger.error("Failed to send email: %s", e)

    def log_stats(self) -> None:
        if not self.enabled:
            return
        failed = self.stats.get("delivery_failed", 0)
        emitted = sum(v for k, v in self.stats.items() if k != "delivery_failed")
        self.logger.info("🔔 %d notification(s) emitted, %d delivery failure(s)", emitted, failed)
