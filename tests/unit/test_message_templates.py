import pytest

from order_warden.messages.templates import full_message, message_text, select_template
from order_warden.types import RiskLevel, Tone, TrackingStatus


def test_delivered_green_is_positive() -> None:
    template = select_template("delivered", "green", "X")

    assert template.tone is Tone.POSITIVE
    assert "delivered" in template.subject.lower()
    assert "X" in template.message
    assert template.copyable is True


@pytest.mark.parametrize("status", ["exception", "delivery_failed"])
def test_red_delivery_issue_is_urgent(status: str) -> None:
    template = select_template(status, "red", "1001")

    assert template.tone is Tone.URGENT
    assert template.subject == "Important update about your order 1001"


@pytest.mark.parametrize("status", ["lost", "unknown"])
def test_red_silent_tracking_is_urgent_check_in(status: str) -> None:
    template = select_template(status, RiskLevel.RED, "1001")

    assert template.tone is Tone.URGENT
    assert template.subject.startswith("Quick check-in")


@pytest.mark.parametrize("status", ["in_transit", "pre_transit"])
def test_yellow_moving_shipment_is_reassuring(status: str) -> None:
    template = select_template(status, "yellow", "1001")

    assert template.tone is Tone.REASSURING
    assert template.subject == "Your order 1001 is on its way!"


def test_out_for_delivery_is_positive() -> None:
    template = select_template(TrackingStatus.OUT_FOR_DELIVERY, RiskLevel.GREEN, "1001")
    assert template.tone is Tone.POSITIVE
    assert "out for delivery" in template.subject


def test_green_in_transit_is_neutral() -> None:
    template = select_template("in_transit", "green", "1001")
    assert template.tone is Tone.NEUTRAL
    assert template.subject == "Your order 1001 is on the way!"


def test_red_in_transit_falls_through_to_status_rule() -> None:
    template = select_template("in_transit", "red", "1001")
    assert template.tone is Tone.NEUTRAL
    assert template.subject == "Your order 1001 is on the way!"


def test_unmatched_combination_gets_generic_template() -> None:
    template = select_template("unknown", "yellow", "1001")
    assert template.tone is Tone.NEUTRAL
    assert template.subject == "Update on your order 1001"


def test_inputs_are_case_insensitive_and_optional() -> None:
    assert select_template("DELIVERED", "GREEN", "1").tone is Tone.POSITIVE
    assert select_template(None, None, "1").subject == "Update on your order 1"


def test_message_helpers() -> None:
    assert message_text("delivered", "green", "7") == select_template("delivered", "green", "7").message
    assert full_message("delivered", "green", "7") == {
        "subject": "Your order 7 has been delivered!",
        "body": select_template("delivered", "green", "7").message,
    }


def test_template_serializes_tone_as_string() -> None:
    payload = select_template("exception", "red", "9").to_dict()
    assert payload["tone"] == "urgent"
    assert payload["copyable"] is True
