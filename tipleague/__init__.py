"""Prediction league backend."""
