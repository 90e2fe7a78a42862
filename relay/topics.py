"""Broker topic names and the fixed mappings built on them.

Every component agrees on naming through this module:

- three subscription groups, subscribed one call per group;
- alert topics and the reading each one reports;
- control keys accepted from browser clients and the topic each republishes to.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

TEMPERATURE = "sensors/temperature"
HUMIDITY = "sensors/humidity"
LDR = "sensors/ldr"
FAN = "sensors/fan"
LIGHT = "sensors/light"

ALERT_TEMP = "Alert_temp"
ALERT_HUMIDITY = "Alert_humidity"
ALERT_DARKNESS = "Alert_darkness"

FAN_USAGE = "fan_usage_percentage"
LIGHT_USAGE = "light_usage_percentage"

SUBSCRIPTION_GROUPS: Tuple[Tuple[str, ...], ...] = (
    (TEMPERATURE, HUMIDITY, LDR, FAN, LIGHT),
    (ALERT_TEMP, ALERT_HUMIDITY, ALERT_DARKNESS),
    (FAN_USAGE, LIGHT_USAGE),
)

ALERT_TOPICS = frozenset({ALERT_TEMP, ALERT_HUMIDITY, ALERT_DARKNESS})

# Reading reported as the alert value when it is already known.
ALERT_READING_FIELDS: Dict[str, str] = {
    ALERT_TEMP: "temperature",
    ALERT_HUMIDITY: "humidity",
    ALERT_DARKNESS: "darkness",
}

# Insertion order is publish order. "Alert_darkness" keeps the casing clients send.
CONTROL_TOPICS: Dict[str, str] = {
    "fan": "manual_status_fan",
    "led": "manual_status_led",
    "control": "status_control",
    "alert_temp": ALERT_TEMP,
    "alert_humidity": ALERT_HUMIDITY,
    "Alert_darkness": ALERT_DARKNESS,
}


def all_topics() -> List[str]:
    return [topic for group in SUBSCRIPTION_GROUPS for topic in group]
