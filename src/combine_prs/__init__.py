"""Merge labeled pull requests into one working copy for combined CI builds."""
