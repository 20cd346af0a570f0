"""Shared utilities for teachable_machine."""
