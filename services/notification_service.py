# services/notification_service.py
import re
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Callable
import logging

import httpx
from fastapi import BackgroundTasks
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from core.cache import get_cache, set_cache
from core.config import settings
from core.constants import PACK_OPTIONS
from core.database import AsyncSessionLocal
from core.exceptions import NotificationError
from models.email_template import EmailTemplate
from schemas.notification import NotificationResult, EmailSendRequest
from services.email_templates import DEFAULT_TEMPLATES

logger = logging.getLogger(__name__)

TEMPLATE_CACHE_KEY = "email_templates"
IF_BLOCK = re.compile(r"\{\{#if\s+(\w+)\}\}(.*?)\{\{/if\}\}", re.DOTALL)


def render_template(template: str, data: Dict[str, Any]) -> str:
    """Fill {{key}} placeholders; {{#if key}}...{{/if}} survives only for non-blank values."""
    def keep_block(match):
        value = data.get(match.group(1))
        return match.group(2) if value is not None and str(value).strip() else ""

    result = IF_BLOCK.sub(keep_block, template)
    for key, value in data.items():
        result = result.replace("{{" + key + "}}", "" if value is None else str(value))
    return result


def campaign_url(campaign) -> str:
    return f"{settings.SITE_URL.rstrip('/')}/campaign/{campaign.campaign_number}"


def format_euros(cents: int) -> str:
    return f"{cents / 100:.2f}"


class NotificationService:
    """Best-effort email dispatch. Never raises to the caller."""

    def __init__(self, session_factory: Optional[Callable] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.session_factory = session_factory or AsyncSessionLocal
        self.transport = transport

    # ---------- Templates ----------
    async def get_templates(self) -> Dict[str, Dict[str, str]]:
        templates = await get_cache(TEMPLATE_CACHE_KEY)
        if templates is None:
            templates = await self._load_templates()
            await set_cache(TEMPLATE_CACHE_KEY, templates, ttl=settings.TEMPLATE_CACHE_SECONDS)
        return templates

    async def _load_templates(self) -> Dict[str, Dict[str, str]]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(EmailTemplate).where(EmailTemplate.is_active.is_(True))
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.warning(f"Email templates unavailable, using bundled defaults: {e}")
            return dict(DEFAULT_TEMPLATES)

        if not rows:
            logger.warning("No email templates in database, using bundled defaults")
            return dict(DEFAULT_TEMPLATES)

        templates = dict(DEFAULT_TEMPLATES)
        templates.update({row.type: {"subject": row.subject, "html": row.html_content} for row in rows})
        return templates

    # ---------- Delivery ----------
    async def send_email(self, to: str, template_type: str, template_data: Dict[str, Any]) -> NotificationResult:
        try:
            templates = await self.get_templates()
            template = templates.get(template_type)
            if not template:
                raise NotificationError(f"Template {template_type} not found")

            data = {k: "" if v is None else str(v) for k, v in template_data.items()}
            subject = render_template(template["subject"], data)
            html = render_template(template["html"], data)

            if not settings.EMAIL_SEND_URL:
                logger.info(f"📧 Email to {to} not sent (no EMAIL_SEND_URL): {subject}")
                return NotificationResult(success=True, simulated=True)

            body = EmailSendRequest(
                to=to, subject=subject, html=html, template_type=template_type, template_data=data,
            ).model_dump(by_alias=True)
            headers = {}
            if settings.EMAIL_SERVICE_KEY:
                headers["Authorization"] = f"Bearer {settings.EMAIL_SERVICE_KEY}"

            async with httpx.AsyncClient(timeout=settings.EMAIL_TIMEOUT_SECONDS, transport=self.transport) as client:
                response = await client.post(settings.EMAIL_SEND_URL, json=body, headers=headers)

            payload = self._json(response)
            if response.status_code >= 400:
                raise NotificationError(payload.get("error") or f"Email service returned {response.status_code}")
            if payload.get("success") is False:
                raise NotificationError(payload.get("error") or "Email service reported failure")

            logger.info(f"📧 Email {template_type} sent to {to}")
            return NotificationResult(success=True)

        except NotificationError as e:
            logger.error(f"Email {template_type} to {to} failed: {e.message}")
            return NotificationResult(success=False, error=e.message)
        except httpx.HTTPError as e:
            logger.error(f"Email {template_type} to {to} failed: {e!r}")
            return NotificationResult(success=False, error=f"Email service unreachable: {e.__class__.__name__}")
        except Exception as e:
            logger.exception(f"Unexpected error sending {template_type} to {to}")
            return NotificationResult(success=False, error=str(e))

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    async def dispatch(self, background_tasks: Optional[BackgroundTasks], to: str, template_type: str,
                       template_data: Dict[str, Any]) -> Optional[NotificationResult]:
        """Queue on the response when a BackgroundTasks is given, otherwise send now."""
        if background_tasks is not None:
            background_tasks.add_task(self.send_email, to, template_type, template_data)
            return None
        return await self.send_email(to, template_type, template_data)

    # ---------- Helpers ----------
    async def send_donation_receipt(self, donation, campaign,
                                    background_tasks: Optional[BackgroundTasks] = None):
        return await self.dispatch(background_tasks, donation.donor_email, "donation_receipt", {
            "donor_name": donation.donor_name or "Supporter",
            "donation_amount": format_euros(donation.amount),
            "campaign_title": campaign.title,
            "organizer_name": campaign.organizer,
            "donation_date": datetime.now(timezone.utc).strftime("%d/%m/%Y"),
            "donation_id": donation.id,
            "campaign_url": campaign_url(campaign),
            "message": donation.message,
        })

    async def send_campaign_approved(self, campaign, background_tasks: Optional[BackgroundTasks] = None):
        url = campaign_url(campaign)
        return await self.dispatch(background_tasks, campaign.email, "campaign_approved", {
            "organizer_name": campaign.organizer,
            "campaign_title": campaign.title,
            "goal_amount": f"{campaign.goal_amount:,}",
            "event_date": campaign.event_date,
            "event_location": campaign.location,
            "campaign_url": url,
            "share_url": url,
        })

    async def send_campaign_rejected(self, campaign, reason: Optional[str] = None,
                                     background_tasks: Optional[BackgroundTasks] = None):
        return await self.dispatch(background_tasks, campaign.email, "campaign_rejected", {
            "organizer_name": campaign.organizer,
            "campaign_title": campaign.title,
            "reason": reason,
        })

    async def send_pack_ordered(self, order, campaign, background_tasks: Optional[BackgroundTasks] = None):
        pack_type = getattr(order.pack_type, "value", order.pack_type)
        return await self.dispatch(background_tasks, campaign.email, "pack_ordered", {
            "organizer_name": campaign.organizer,
            "campaign_title": campaign.title,
            "pack_name": PACK_OPTIONS[pack_type]["name"],
            "pack_amount": format_euros(order.amount),
            "pack_order_id": order.id,
        })

    async def send_pack_payment_link(self, to: str, order, organizer_name: str, campaign_title: str,
                                     link_url: str, background_tasks: Optional[BackgroundTasks] = None):
        return await self.dispatch(background_tasks, to, "pack_payment_link", {
            "organizer_name": organizer_name,
            "campaign_title": campaign_title,
            "payment_link": link_url,
            "pack_amount": format_euros(order.amount),
            "pack_order_id": order.id,
        })
