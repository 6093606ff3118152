"""NAV series utilities.

- `merge`: combine a NAV series with distribution records into one per-date view
- `service`: load, merge and filter one fund's data from a start date
"""
