"""Utility modules for studybridge."""
