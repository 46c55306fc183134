"""Scheduler module for the daily reminder job.

Schedule overview:
  - every 15 minutes (:00, :15, :30, :45 UTC) - Daily reminder tick

Each tick sends to the users whose local preferred time rounds to the
current slot and who have not received a reminder on their local date yet.
"""
