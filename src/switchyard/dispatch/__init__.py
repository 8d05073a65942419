"""Dispatch helpers shared by the application object."""
