"""Longitudinal patient memory for rounds conversations."""
