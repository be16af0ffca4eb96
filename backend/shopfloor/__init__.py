"""Shopfloor Tracker - work item routing for a machining floor."""
