"""Email notifications for vendor account changes.

Emails go out through the SendGrid HTTP API. Every public method returns a
bool and never raises for delivery problems: a notification must never
decide the outcome of the status change that triggered it.
"""

import logging
from datetime import UTC, datetime
from html import escape
from typing import Any

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


class NotificationService:
    """Service for sending vendor lifecycle emails."""

    # Notification types
    VENDOR_SIGNUP = "vendor_signup"
    VENDOR_APPROVED = "vendor_approved"
    VENDOR_REJECTED = "vendor_rejected"
    VENDOR_SUSPENDED = "vendor_suspended"

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._http_client = http_client

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(url, **kwargs)
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await client.post(url, **kwargs)

    # ==================== EMAIL (SENDGRID) ====================

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
    ) -> bool:
        """Send an email via SendGrid.

        Args:
            to_email: Recipient email
            subject: Email subject
            html_content: HTML body
            text_content: Plain text body

        Returns:
            bool: True if sent successfully
        """
        if not settings.sendgrid_api_key:
            logger.info(f"SendGrid not configured; skipping email to {to_email}: {subject}")
            return False

        payload: dict[str, Any] = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {
                "email": settings.email_from_address,
                "name": settings.email_from_name,
            },
            "subject": subject,
            "content": [{"type": "text/html", "value": html_content}],
        }
        if text_content:
            payload["content"].insert(0, {"type": "text/plain", "value": text_content})

        try:
            response = await self._post(
                SENDGRID_URL,
                headers={
                    "Authorization": f"Bearer {settings.sendgrid_api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
        except httpx.HTTPError:
            logger.exception(f"Failed to send email to {to_email}")
            return False

        if response.status_code not in (200, 202):
            logger.error(
                f"SendGrid rejected email to {to_email}: "
                f"{response.status_code} {response.text[:200]}"
            )
            return False

        logger.info(f"Email sent to {to_email}: {subject}")
        return True

    def _generate_email_html(self, title: str, paragraphs: list[str], action_url: str | None) -> str:
        """Generate simple HTML email content."""
        body = "".join(
            f'<p style="color: #4b5563; font-size: 16px; line-height: 1.6;">{p}</p>'
            for p in paragraphs
        )
        button_html = ""
        if action_url:
            button_html = f"""
            <p style="margin-top: 24px;">
                <a href="{action_url}"
                   style="background-color: #4e342e; color: white; padding: 12px 24px;
                          text-decoration: none; border-radius: 6px; display: inline-block;">
                    Open Dashboard
                </a>
            </p>
            """

        return f"""
        <!DOCTYPE html>
        <html>
        <head><meta charset="utf-8"></head>
        <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;
                     padding: 20px; color: #333;">
            <div style="background-color: #f9fafb; border-radius: 8px; padding: 24px;">
                <h1 style="color: #111827; font-size: 24px; margin-bottom: 16px;">{title}</h1>
                {body}
                {button_html}
            </div>
            <p style="color: #9ca3af; font-size: 12px; margin-top: 24px; text-align: center;">
                &copy; {datetime.now(UTC).year} {settings.app_name}
            </p>
        </body>
        </html>
        """

    # ==================== VENDOR LIFECYCLE ====================

    async def notify_vendor_approved(self, email: str, shop_name: str, owner_name: str) -> bool:
        """Tell a vendor their account was approved."""
        html = self._generate_email_html(
            "Your Vendor Account Has Been Approved!",
            [
                f"Dear {escape(owner_name)},",
                f"Congratulations! Your vendor account for <strong>{escape(shop_name)}</strong> "
                "has been approved. You can now add your services, manage your bookings "
                "and start receiving customer appointments.",
            ],
            f"{settings.frontend_url}/vendor/login",
        )
        return await self.send_email(
            to_email=email,
            subject=f"Your Vendor Account Has Been Approved - {settings.app_name}",
            html_content=html,
        )

    async def notify_vendor_rejected(
        self,
        email: str,
        shop_name: str,
        owner_name: str,
        reason: str | None = None,
    ) -> bool:
        """Tell a vendor their application was rejected."""
        paragraphs = [
            f"Dear {escape(owner_name)},",
            f"Thank you for your interest in {settings.app_name}. Unfortunately your "
            f"vendor application for <strong>{escape(shop_name)}</strong> was not approved.",
        ]
        if reason:
            paragraphs.append(f"Reason: {escape(reason)}")
        html = self._generate_email_html("Vendor Application Update", paragraphs, None)
        return await self.send_email(
            to_email=email,
            subject=f"Vendor Application Update - {settings.app_name}",
            html_content=html,
        )

    async def notify_vendor_suspended(
        self,
        email: str,
        shop_name: str,
        owner_name: str,
        reason: str | None = None,
    ) -> bool:
        """Tell a vendor their account was suspended."""
        paragraphs = [
            f"Dear {escape(owner_name)},",
            f"Your vendor account for <strong>{escape(shop_name)}</strong> has been suspended.",
        ]
        if reason:
            paragraphs.append(f"Reason: {escape(reason)}")
        html = self._generate_email_html("Vendor Account Suspended", paragraphs, None)
        return await self.send_email(
            to_email=email,
            subject=f"Vendor Account Suspended - {settings.app_name}",
            html_content=html,
        )

    async def notify_managers_vendor_signup(
        self,
        shop_name: str,
        owner_name: str,
        email: str,
        phone: str | None = None,
        address: str | None = None,
    ) -> bool:
        """Tell managers a new vendor is waiting for approval."""
        paragraphs = [
            "A new vendor has registered and requires your approval:",
            f"Shop Name: {escape(shop_name)}",
            f"Owner Name: {escape(owner_name)}",
            f"Email: {escape(email)}",
        ]
        if phone:
            paragraphs.append(f"Phone: {escape(phone)}")
        if address:
            paragraphs.append(f"Address: {escape(address)}")
        html = self._generate_email_html(
            "New Vendor Registration",
            paragraphs,
            f"{settings.frontend_url}/manager/vendors",
        )

        sent = True
        for manager_email in settings.manager_emails:
            ok = await self.send_email(
                to_email=manager_email,
                subject=f"New Vendor Registration: {shop_name}",
                html_content=html,
            )
            sent = sent and ok
        return sent

    async def dispatch(self, notification_type: str, payload: dict[str, Any]) -> bool:
        """Send a notification by type name."""
        handlers = {
            self.VENDOR_SIGNUP: self.notify_managers_vendor_signup,
            self.VENDOR_APPROVED: self.notify_vendor_approved,
            self.VENDOR_REJECTED: self.notify_vendor_rejected,
            self.VENDOR_SUSPENDED: self.notify_vendor_suspended,
        }
        handler = handlers.get(notification_type)
        if handler is None:
            logger.error(f"Unknown notification type: {notification_type}")
            return False
        return await handler(**payload)


# Singleton instance
notification_service = NotificationService()
