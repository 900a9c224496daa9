import asyncio
import logging

import httpx
import pytz
from django.conf import settings
from django.utils import timezone


logger = logging.getLogger(__name__)


async def send_slack_notification_async(message: str, blocks: list = None):
    """
    Send a message to Slack via webhook.

    Args:
        message: Plain text message to send
        blocks: Optional list of Slack Block Kit blocks for rich formatting

    Returns:
        True if message sent successfully, False otherwise
    """
    if not settings.SLACK_WEBHOOK_URL:
        logger.info(f"No Slack webhook configured. Message: {message}")
        return False

    payload = {"text": message}

    if blocks:
        payload["blocks"] = blocks

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                settings.SLACK_WEBHOOK_URL,
                headers={"Content-type": "application/json"},
                json=payload,
                timeout=10.0
            )
            response.raise_for_status()
            return True
    except httpx.HTTPError as e:
        logger.warning(f"Failed to send Slack notification: {e}")
        return False


def send_slack_notification(message: str, blocks: list = None):
    """
    Synchronous wrapper for send_slack_notification_async.

    Use this in management commands and Prefect flows.

    Example:
        >>> from config.notifications import send_slack_notification
        >>> send_slack_notification("Race 12 scored")
    """
    return asyncio.run(send_slack_notification_async(message, blocks))


def local_timestamp(moment=None) -> str:
    """Format a moment in the league's notification timezone"""
    tz = pytz.timezone(settings.NOTIFICATION_TIMEZONE)
    moment = moment or timezone.now()
    return moment.astimezone(tz).strftime('%b %d, %Y %I:%M %p %Z')


def _header(text: str) -> dict:
    return {
        "type": "header",
        "text": {
            "type": "plain_text",
            "text": text,
            "emoji": True
        }
    }


def _fields(*pairs) -> dict:
    return {
        "type": "section",
        "fields": [
            {"type": "mrkdwn", "text": f"*{label}:*\n{value}"}
            for label, value in pairs
        ]
    }


def _context() -> dict:
    return {
        "type": "context",
        "elements": [
            {"type": "mrkdwn", "text": local_timestamp()}
        ]
    }


def send_scoring_notification(summary: dict, league_name: str, race_name: str):
    """
    Post a race scoring summary.

    Args:
        summary: Result dict from score_race_flow
        league_name: League display name
        race_name: Race display name

    Returns:
        True if notification sent successfully, False otherwise
    """
    try:
        status = summary.get('status', 'unknown')
        if status == 'success':
            status_text = 'Scored'
        elif status == 'not_available':
            status_text = 'Results Not Available'
        else:
            status_text = status.replace('_', ' ').title()

        blocks = [
            _header(f"{race_name} {status_text}"),
            _fields(
                ("League", league_name),
                ("Free Pick", "Yes" if summary.get('is_free_pick') else "No"),
            ),
        ]

        if status == 'success':
            blocks.append(_fields(
                ("Players Scored", summary.get('scored_count', 0)),
                ("Skipped (unpaid)", summary.get('skipped_count', 0)),
            ))

        if summary.get('errors'):
            lines = '\n'.join(f"• {error}" for error in summary['errors'][:10])
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Pick Issues:*\n{lines}"}
            })

        if summary.get('message'):
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": summary['message']}
            })

        blocks.append(_context())

        return send_slack_notification(
            message=f"{league_name}: {race_name} {status_text}",
            blocks=blocks
        )

    except Exception as e:
        logger.warning(f"Failed to send scoring notification: {e}")
        return False


def send_chase_notification(summary: dict, league_name: str, action: str):
    """
    Post a Chase transition summary (seeding, elimination, championship).

    Args:
        summary: Result dict from one of the Chase flows
        league_name: League display name
        action: Short title, e.g. "Round of 16 Eliminations"

    Returns:
        True if notification sent successfully, False otherwise
    """
    try:
        status = summary.get('status', 'unknown')
        title = action if status == 'success' else f"{action} Failed"

        pairs = [("League", league_name)]
        for key, label in (
            ('qualifier_count', 'Chase Field'),
            ('wildcard_count', 'Wild Cards'),
            ('advancing_count', 'Advancing'),
            ('eliminated_count', 'Eliminated'),
            ('champion_name', 'Champion'),
            ('winner_name', 'Regular-Season Winner'),
        ):
            if key in summary:
                pairs.append((label, summary[key]))

        blocks = [_header(title)]
        # Slack allows at most 10 fields per section
        for start in range(0, len(pairs), 10):
            blocks.append(_fields(*pairs[start:start + 10]))

        if summary.get('message'):
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": summary['message']}
            })

        blocks.append(_context())

        return send_slack_notification(
            message=f"{league_name}: {title}",
            blocks=blocks
        )

    except Exception as e:
        logger.warning(f"Failed to send Chase notification: {e}")
        return False
