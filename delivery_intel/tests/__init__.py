"""Delivery Intelligence test suite."""
