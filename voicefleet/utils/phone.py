import phonenumbers

from voicefleet.utils.logger import logger


def format_e164(phone_number: str, default_region: str = "US") -> str:
    """
    Format phone number to E.164 format.

    Args:
        phone_number: Phone number string in any format
        default_region: Region assumed when the number has no country code

    Returns:
        str: E.164 formatted phone number (e.g., +15551234567), or the input
            unchanged if it cannot be parsed
    """
    try:
        parsed = phonenumbers.parse(phone_number, default_region)
        if phonenumbers.is_valid_number(parsed):
            return phonenumbers.format_number(
                parsed, phonenumbers.PhoneNumberFormat.E164
            )

        # Retry without a region in case the number is international
        parsed = phonenumbers.parse(phone_number, None)
        if phonenumbers.is_valid_number(parsed):
            return phonenumbers.format_number(
                parsed, phonenumbers.PhoneNumberFormat.E164
            )
    except phonenumbers.NumberParseException:
        logger.warning("Could not parse phone number", phone_number=phone_number)

    return phone_number


def last_digits(phone_number: str, count: int = 4) -> str:
    """Return the trailing digits of a number for display names."""
    digits = "".join(ch for ch in phone_number if ch.isdigit())
    return digits[-count:]
