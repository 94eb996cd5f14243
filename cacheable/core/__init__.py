"""
Core Module

Settings and logging configuration shared by every cache layer.
"""
