"""Sensor addressing, reading conversion and the acquisition loop."""
