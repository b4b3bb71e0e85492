"""Herring spawn index calculations from spawn survey data."""
