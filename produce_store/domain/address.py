"""
Address Domain Models

Saved delivery addresses for a customer's address book.

Author: TM3
Date: 2026-02-11
"""
import re
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime

PINCODE_PATTERN = re.compile(r"^\d{6}$")


def clean_pincode(pincode: Optional[str]) -> str:
    """Strip all whitespace from a user-entered pincode"""
    return re.sub(r"\s+", "", pincode or "")


def is_valid_pincode(pincode: Optional[str]) -> bool:
    return bool(PINCODE_PATTERN.match(clean_pincode(pincode)))


class Address(BaseModel):
    id: str
    user_id: str
    label: str = "Home"
    full_name: str
    phone: str
    address: str
    city: str
    pincode: str
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def one_line(self) -> str:
        return f"{self.address}, {self.pincode}"

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


def pick_default(addresses: List[Address]) -> Optional[Address]:
    """The flagged default address, else the first one listed"""
    for address in addresses:
        if address.is_default:
            return address
    return addresses[0] if addresses else None


class AddressCreate(BaseModel):
    label: str = Field("Home", max_length=50)
    full_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=10, max_length=15)
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field("Nagpur", max_length=100)
    pincode: str
    is_default: bool = False

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, value: str) -> str:
        cleaned = clean_pincode(value)
        if not PINCODE_PATTERN.match(cleaned):
            raise ValueError("Pincode must be 6 digits")
        return cleaned


class AddressUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=50)
    full_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=10, max_length=15)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = None
    is_default: Optional[bool] = None

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        cleaned = clean_pincode(value)
        if not PINCODE_PATTERN.match(cleaned):
            raise ValueError("Pincode must be 6 digits")
        return cleaned
