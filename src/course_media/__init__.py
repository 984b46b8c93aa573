"""Signed video delivery and media file lifecycle for online courses."""
