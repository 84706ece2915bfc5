# services/sms_service.py
import logging

from config import SMS_DRY_RUN, SMS_SENDER_ID

logger = logging.getLogger(__name__)

_sns_client = None

def _sns():
    global _sns_client
    if _sns_client is None:
        from services.aws_session import get_session
        _sns_client = get_session().client("sns")
    return _sns_client


def send_sms(phone_number: str, message: str) -> None:
    """Send a transactional SMS through SNS (or just log it in dry-run)."""
    if SMS_DRY_RUN:
        logger.info("[DRY-RUN] Would send SMS → %s: %s", phone_number, message)
        return
    _sns().publish(
        PhoneNumber=phone_number,
        Message=message,
        MessageAttributes={
            "AWS.SNS.SMS.SenderID": {"DataType": "String", "StringValue": SMS_SENDER_ID},
            "AWS.SNS.SMS.SMSType": {"DataType": "String", "StringValue": "Transactional"},
        },
    )
    logger.info("SMS sent to %s", phone_number)
