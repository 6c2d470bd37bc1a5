"""Relational store for persisted telemetry samples."""
