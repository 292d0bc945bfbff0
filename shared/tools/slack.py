"""Send condition changes to Slack via incoming webhook."""

import logging

import httpx

log = logging.getLogger("sentinel.slack")

SEVERITY_EMOJI = {
    "critical": ":red_circle:",
    "warning": ":warning:",
    "resolved": ":white_check_mark:",
}

SEVERITY_COLOR = {
    "critical": "#dc3545",
    "warning": "#ffc107",
    "resolved": "#198754",
}


def build_payload(severity: str, title: str, message: str) -> dict:
    emoji = SEVERITY_EMOJI.get(severity, ":question:")
    return {
        "attachments": [
            {
                "color": SEVERITY_COLOR.get(severity, "#6c757d"),
                "blocks": [
                    {
                        "type": "header",
                        "text": {"type": "plain_text", "text": f"{emoji} {title}"},
                    },
                    {
                        "type": "section",
                        "text": {"type": "mrkdwn", "text": message or "_no details_"},
                    },
                    {
                        "type": "context",
                        "elements": [
                            {
                                "type": "mrkdwn",
                                "text": f"*Severity:* {severity.upper()} | *Source:* Route Sentinel",
                            }
                        ],
                    },
                ],
            }
        ]
    }


async def send_slack_alert(
    config,
    severity: str,
    title: str,
    message: str,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """Send a formatted alert to Slack.

    Args:
        severity: One of "critical", "warning", "resolved".
        title: Alert title.
        message: Alert body (can be multi-line).

    Returns:
        True if the message was sent successfully.
    """
    if not config.slack_webhook_url:
        log.warning("No Slack webhook configured, alert not sent: [%s] %s", severity, title)
        return False

    payload = build_payload(severity, title, message)
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.post(config.slack_webhook_url, json=payload)
            resp.raise_for_status()
            log.info("Slack alert sent: [%s] %s", severity, title)
            return True
    except httpx.HTTPError:
        log.exception("Failed to send Slack alert: [%s] %s", severity, title)
        return False
