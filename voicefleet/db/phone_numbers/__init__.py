"""
Phone number database models and repository.

This module handles the storage of per-tenant phone number resources.
"""

from voicefleet.db.phone_numbers.model import PhoneResource
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository

__all__ = ["PhoneResource", "PhoneResourceRepository"]
