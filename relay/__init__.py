"""Telemetry relay: MQTT sensor/alert topics to Socket.IO clients, with an alert log and SNS notifications."""
