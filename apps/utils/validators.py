import re
from rest_framework import serializers


def validate_phone(value):
    pattern = r"^\d{9,}$"
    if not re.match(pattern, str(value)):
        raise serializers.ValidationError("Phone number must be at least 9 digits.")
    return value


def validate_personal_id(value):
    if not re.match(r"^\d{11}$", str(value)):
        raise serializers.ValidationError("Personal ID must be 11 digits.")
    return value


def validate_minor_units(value):
    """
    Gateway amounts arrive as strings of minor units, e.g. "11000".
    """
    if not re.match(r"^\d+$", str(value).strip()):
        raise serializers.ValidationError("Amount must be a non-negative integer string of minor units.")
    return value
