"""Sync time blocks from a task manager into an Evolution Data Server calendar."""
