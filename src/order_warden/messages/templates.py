"""Ready-to-send buyer messages keyed on tracking status and risk."""

from __future__ import annotations

from order_warden.types import MessageTemplate, RiskLevel, Tone, TrackingStatus

_S = TrackingStatus


def select_template(
    status: TrackingStatus | str | None,
    risk_level: RiskLevel | str | None,
    order_id: str,
) -> MessageTemplate:
    """Pick a notification draft for a buyer.

    Risk is matched first (red, then yellow), then status, and anything left
    over gets a neutral check-in.
    """
    normalized_status = TrackingStatus.coerce(status)
    risk = _coerce_risk(risk_level)

    if risk is RiskLevel.RED:
        if normalized_status in (_S.EXCEPTION, _S.DELIVERY_FAILED):
            return MessageTemplate(
                subject=f"Important update about your order {order_id}",
                message=(
                    f"Hi there! I wanted to reach out about your order {order_id}. "
                    "The tracking shows there's been a delivery issue. I'm actively working "
                    "with the carrier to resolve this and will send you an update within "
                    "24 hours. Your satisfaction is my priority!"
                ),
                tone=Tone.URGENT,
            )
        if normalized_status in (_S.LOST, _S.UNKNOWN):
            return MessageTemplate(
                subject=f"Quick check-in about your order {order_id}",
                message=(
                    f"Hi! I noticed the tracking for your order {order_id} hasn't updated in "
                    "a while. I'm checking with the carrier now. If we don't see movement in "
                    "the next 48 hours, I'll send a replacement right away. Thanks for your "
                    "patience!"
                ),
                tone=Tone.URGENT,
            )

    if risk is RiskLevel.YELLOW and normalized_status in (_S.IN_TRANSIT, _S.PRE_TRANSIT):
        return MessageTemplate(
            subject=f"Your order {order_id} is on its way!",
            message=(
                f"Hi! Just wanted to give you a quick update - your order {order_id} is in "
                "transit but running a bit slower than usual. Carriers are experiencing some "
                "delays, but your package is moving. I'm keeping an eye on it and will update "
                "you if anything changes!"
            ),
            tone=Tone.REASSURING,
        )

    if normalized_status is _S.DELIVERED:
        return MessageTemplate(
            subject=f"Your order {order_id} has been delivered!",
            message=(
                f"Great news! Your order {order_id} shows as delivered. I hope you love it! "
                "If you have any questions or concerns, please don't hesitate to reach out. "
                "I'd really appreciate it if you could leave a review when you get a chance. "
                "Thanks for your order!"
            ),
            tone=Tone.POSITIVE,
        )

    if normalized_status is _S.OUT_FOR_DELIVERY:
        return MessageTemplate(
            subject=f"Your order {order_id} is out for delivery today!",
            message=(
                f"Exciting news! Your order {order_id} is out for delivery and should arrive "
                "today. Keep an eye out for the carrier. If you have any questions, I'm here "
                "to help!"
            ),
            tone=Tone.POSITIVE,
        )

    if normalized_status is _S.IN_TRANSIT:
        return MessageTemplate(
            subject=f"Your order {order_id} is on the way!",
            message=(
                f"Hi! Your order {order_id} is in transit and making good progress. You can "
                "expect it to arrive soon. I'm tracking it closely and will let you know if "
                "there are any updates. Thanks for your order!"
            ),
            tone=Tone.NEUTRAL,
        )

    return MessageTemplate(
        subject=f"Update on your order {order_id}",
        message=(
            f"Hi! I wanted to check in about your order {order_id}. I'm monitoring the "
            "tracking and will keep you posted on any updates. If you have any questions, "
            "feel free to reach out anytime!"
        ),
        tone=Tone.NEUTRAL,
    )


def message_text(
    status: TrackingStatus | str | None, risk_level: RiskLevel | str | None, order_id: str
) -> str:
    return select_template(status, risk_level, order_id).message


def full_message(
    status: TrackingStatus | str | None, risk_level: RiskLevel | str | None, order_id: str
) -> dict[str, str]:
    """Subject and body, ready for an email client."""
    template = select_template(status, risk_level, order_id)
    return {"subject": template.subject, "body": template.message}


def _coerce_risk(value: RiskLevel | str | None) -> RiskLevel:
    if isinstance(value, RiskLevel):
        return value
    try:
        return RiskLevel(str(value or "green").strip().lower())
    except ValueError:
        return RiskLevel.GREEN
